"""Column value formatters.

Every formatter takes a raw scalar value (possibly None) and returns a
display string. None always maps to an empty string and malformed values
are rendered as-is rather than raising.
"""

from datetime import datetime, timezone as dt_timezone
from html import escape
from typing import Any, Callable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

Formatter = Callable[[Any], str]

DEFAULT_DATE_FORMAT = "%A, %d %B %Y, %I:%M %p"


def plain(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def userdate(date_format: str = DEFAULT_DATE_FORMAT, timezone: str = "UTC") -> Formatter:
    """Build a formatter rendering unix timestamps in the viewer's timezone.

    Args:
        date_format: strftime format
        timezone: IANA timezone name; unknown names fall back to UTC

    Returns:
        Formatter for timestamp values. Zero or empty timestamps render as ''.
    """
    try:
        tz = ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError):
        tz = dt_timezone.utc

    def format_timestamp(value: Any) -> str:
        if value is None or value == "":
            return ""
        try:
            timestamp = int(value)
        except (TypeError, ValueError):
            return str(value)
        if timestamp == 0:
            return ""
        try:
            return datetime.fromtimestamp(timestamp, tz).strftime(date_format)
        except (OverflowError, OSError, ValueError):
            return str(value)

    return format_timestamp


def percent(value: Any) -> str:
    if value is None:
        return ""
    if not value:
        return "0%"
    return f"{value}%"


def boolean(value: Any) -> str:
    if value is None or value == "":
        return ""
    if isinstance(value, str):
        value = value.strip().lower() not in ("0", "false", "no")
    return "Yes" if value else "No"


def module_icon(wwwroot: str = "") -> Formatter:
    """Build a formatter rendering a module name as its icon markup."""
    base = wwwroot.rstrip("/")

    def format_icon(value: Any) -> str:
        if value is None or value == "":
            return ""
        name = escape(str(value), quote=True)
        src = f"{base}/theme/image.php?image=icon&amp;component=mod_{name}"
        return f'<img class="icon" alt="{name}" title="{name}" src="{src}" />'

    return format_icon
