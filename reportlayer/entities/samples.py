"""Engagement samples entity.

Each sample records a student's engagement percentage over a time window.
"""

from reportlayer.core.column import Column
from reportlayer.core.entity import EntityDefinition, ReportEntity
from reportlayer.core.filter import Filter
from reportlayer.core.formatting import percent
from reportlayer.core.join import JoinFragment
from reportlayer.entities.helpers import date_filter, label, text_column, text_filter, timestamp_column


def samples_join(entity: ReportEntity) -> JoinFragment:
    u = entity.get_table_alias("user")
    las = entity.get_table_alias("local_ace_samples")
    return JoinFragment(table="local_ace_samples", alias=las, predicate=f"{las}.userid = {u}.id")


def _columns(entity: ReportEntity) -> list[Column]:
    las = entity.get_table_alias("local_ace_samples")
    join = samples_join(entity)
    return [
        timestamp_column(entity, "starttime", label("starttime", "Start time"), f"{las}.starttime", [join]),
        timestamp_column(entity, "endtime", label("endtime", "End time"), f"{las}.endtime", [join]),
        text_column(
            entity, "studentengagement", label("studentengagement", "Student engagement"), f"{las}.value", [join]
        )
        .set_type("integer")
        .add_callback(percent),
    ]


def _filters(entity: ReportEntity) -> list[Filter]:
    las = entity.get_table_alias("local_ace_samples")
    join = samples_join(entity)
    return [
        date_filter(entity, "starttime", label("starttime", "Start time"), f"{las}.starttime", [join]),
        date_filter(entity, "endtime", label("endtime", "End time"), f"{las}.endtime", [join]),
        text_filter(
            entity, "studentengagement", label("studentengagement", "Student engagement"), f"{las}.value", [join]
        ),
    ]


SAMPLES = EntityDefinition(
    name="samples",
    title=label("sampleentitytitle", "Engagement samples"),
    table_aliases={
        "user": "u",
        "local_ace_samples": "las",
    },
    columns=_columns,
    filters=_filters,
    filters_as_conditions=False,
)
