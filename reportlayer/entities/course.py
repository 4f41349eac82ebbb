"""Course entity."""

from reportlayer.core.column import Column
from reportlayer.core.entity import EntityDefinition, ReportEntity
from reportlayer.core.filter import Filter
from reportlayer.entities.helpers import date_filter, label, text_column, text_filter, timestamp_column


def _columns(entity: ReportEntity) -> list[Column]:
    c = entity.get_table_alias("course")
    return [
        text_column(entity, "fullname", label("fullnamecourse", "Course full name", "core"), f"{c}.fullname"),
        text_column(entity, "shortname", label("shortnamecourse", "Course short name", "core"), f"{c}.shortname"),
        text_column(entity, "idnumber", label("idnumbercourse", "Course ID number", "core"), f"{c}.idnumber"),
        timestamp_column(entity, "startdate", label("startdate", "Course start date", "core"), f"{c}.startdate"),
    ]


def _filters(entity: ReportEntity) -> list[Filter]:
    c = entity.get_table_alias("course")
    return [
        text_filter(entity, "fullname", label("fullnamecourse", "Course full name", "core"), f"{c}.fullname"),
        text_filter(entity, "shortname", label("shortnamecourse", "Course short name", "core"), f"{c}.shortname"),
        text_filter(entity, "idnumber", label("idnumbercourse", "Course ID number", "core"), f"{c}.idnumber"),
        date_filter(entity, "startdate", label("startdate", "Course start date", "core"), f"{c}.startdate"),
    ]


COURSE = EntityDefinition(
    name="course",
    title=label("entitycourse", "Course", "core_reportbuilder"),
    table_aliases={"course": "c"},
    columns=_columns,
    filters=_filters,
)
