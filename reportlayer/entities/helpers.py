"""Column and filter shortcuts shared by the entity definitions."""

from reportlayer.core.column import Column
from reportlayer.core.entity import ReportEntity
from reportlayer.core.filter import Filter
from reportlayer.core.formatting import Formatter, userdate
from reportlayer.core.join import JoinFragment
from reportlayer.core.lang import LangString

COMPONENT = "reportlayer"


def label(identifier: str, default: str, component: str = COMPONENT) -> LangString:
    return LangString(identifier, component, default)


def userdate_formatter(entity: ReportEntity) -> Formatter:
    """Timestamp formatter using the report viewer's date settings."""
    return userdate(entity.context.date_format, entity.context.timezone)


def text_column(
    entity: ReportEntity, name: str, title: LangString, field: str, joins: list[JoinFragment] | None = None
) -> Column:
    return (
        Column(name=name, label=title, entity_name=entity.name)
        .add_joins(joins or [])
        .add_field(field)
        .set_is_sortable(True)
    )


def timestamp_column(
    entity: ReportEntity, name: str, title: LangString, field: str, joins: list[JoinFragment] | None = None
) -> Column:
    return (
        Column(name=name, label=title, entity_name=entity.name)
        .add_joins(joins or [])
        .add_field(field)
        .set_type("timestamp")
        .set_is_sortable(True)
        .add_callback(userdate_formatter(entity))
    )


def text_filter(
    entity: ReportEntity, name: str, title: LangString, field: str, joins: list[JoinFragment] | None = None
) -> Filter:
    return Filter(kind="text", name=name, label=title, entity_name=entity.name, sql=field).add_joins(joins or [])


def date_filter(
    entity: ReportEntity, name: str, title: LangString, field: str, joins: list[JoinFragment] | None = None
) -> Filter:
    return Filter(kind="date", name=name, label=title, entity_name=entity.name, sql=field).add_joins(joins or [])
