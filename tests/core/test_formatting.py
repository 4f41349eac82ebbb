"""Test column value formatters."""

import pytest

from reportlayer.core.formatting import boolean, module_icon, percent, plain, userdate


@pytest.mark.parametrize("formatter", [plain, percent, boolean, userdate(), module_icon("https://example.com")])
def test_none_formats_as_empty_string(formatter):
    assert formatter(None) == ""


def test_userdate():
    fmt = userdate("%Y-%m-%d %H:%M")

    assert fmt(1700000000) == "2023-11-14 22:13"
    assert fmt("1700000000") == "2023-11-14 22:13"
    assert fmt(0) == ""
    assert fmt("") == ""
    assert fmt("soon") == "soon"


def test_userdate_timezone():
    assert userdate("%Y-%m-%d %H:%M", "Pacific/Auckland")(1700000000) == "2023-11-15 11:13"
    # Unknown zones fall back to UTC
    assert userdate("%H:%M", "Mars/Olympus_Mons")(1700000000) == "22:13"


def test_percent():
    assert percent(42) == "42%"
    assert percent(0) == "0%"
    assert percent("") == "0%"


def test_boolean():
    assert boolean(1) == "Yes"
    assert boolean(0) == "No"
    assert boolean("false") == "No"
    assert boolean("") == ""


def test_module_icon_escapes_name():
    icon = module_icon("https://example.com/")

    assert icon("quiz") == (
        '<img class="icon" alt="quiz" title="quiz" '
        'src="https://example.com/theme/image.php?image=icon&amp;component=mod_quiz" />'
    )
    assert "<script>" not in icon("<script>")
    assert icon("") == ""
