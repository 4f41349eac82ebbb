"""Enrolment entity.

Columns describing a user's course enrolments:

- time the enrolment started, ended and was created (user_enrolments)
- enrolment method (enrol.enrol)
- role given to the user (role.shortname)
- last access to the enrolled course (user_lastaccess)
"""

from collections.abc import Mapping

from reportlayer.core.column import Column
from reportlayer.core.entity import EntityDefinition, ReportEntity
from reportlayer.core.filter import Filter
from reportlayer.core.join import JoinFragment
from reportlayer.entities.helpers import date_filter, label, text_column, text_filter, timestamp_column

# Order in which the enrolment tables are reached from the user table
JOIN_CHAIN = ("user_enrolments", "enrol", "role", "user_lastaccess", "course")


def enrolment_joins(aliases: Mapping[str, str], upto: str = "course") -> list[JoinFragment]:
    """Joins from the user table down the enrolment chain.

    Args:
        aliases: Table aliases, must cover 'user' and every table up to ``upto``
        upto: Last table of JOIN_CHAIN to include

    Returns:
        Ordered join fragments
    """
    u = aliases["user"]
    ue = aliases["user_enrolments"]
    e = aliases["enrol"]
    joins = {
        "user_enrolments": JoinFragment(table="user_enrolments", alias=ue, predicate=f"{ue}.userid = {u}.id"),
        "enrol": JoinFragment(table="enrol", alias=e, predicate=f"{e}.id = {ue}.enrolid"),
    }
    if "role" in aliases:
        r = aliases["role"]
        joins["role"] = JoinFragment(kind="left", table="role", alias=r, predicate=f"{r}.id = {e}.roleid")
    if "user_lastaccess" in aliases:
        ul = aliases["user_lastaccess"]
        joins["user_lastaccess"] = JoinFragment(
            kind="left",
            table="user_lastaccess",
            alias=ul,
            predicate=f"{ul}.userid = {u}.id AND {ul}.courseid = {e}.courseid",
        )
    if "course" in aliases:
        c = aliases["course"]
        joins["course"] = JoinFragment(table="course", alias=c, predicate=f"{c}.id = {e}.courseid")

    chain = JOIN_CHAIN[: JOIN_CHAIN.index(upto) + 1]
    # Tables that are not needed to reach ``upto`` are skipped
    needed = {"user_enrolments", "enrol", upto}
    return [joins[table] for table in chain if table in needed]


def _columns(entity: ReportEntity) -> list[Column]:
    aliases = entity.get_table_aliases()
    ue = entity.get_table_alias("user_enrolments")
    e = entity.get_table_alias("enrol")
    r = entity.get_table_alias("role")
    ul = entity.get_table_alias("user_lastaccess")

    to_enrolment = enrolment_joins(aliases, "enrol")

    return [
        timestamp_column(entity, "timestart", label("timestarted", "Time started"), f"{ue}.timestart", to_enrolment),
        timestamp_column(entity, "timeend", label("timeend", "Time ended"), f"{ue}.timeend", to_enrolment),
        timestamp_column(
            entity, "timecreated", label("timecreated", "Time created"), f"{ue}.timecreated", to_enrolment
        ),
        text_column(entity, "enrol", label("enrol", "Enrolment method"), f"{e}.enrol", to_enrolment),
        text_column(entity, "role", label("role", "Role"), f"{r}.shortname", enrolment_joins(aliases, "role")),
        timestamp_column(
            entity,
            "lastaccessed",
            label("lastaccessed", "Last accessed"),
            f"{ul}.timeaccess",
            enrolment_joins(aliases, "user_lastaccess"),
        ),
    ]


def _filters(entity: ReportEntity) -> list[Filter]:
    aliases = entity.get_table_aliases()
    ue = entity.get_table_alias("user_enrolments")
    e = entity.get_table_alias("enrol")
    r = entity.get_table_alias("role")
    ul = entity.get_table_alias("user_lastaccess")

    to_enrolment = enrolment_joins(aliases, "enrol")

    return [
        date_filter(entity, "timestart", label("timestarted", "Time started"), f"{ue}.timestart", to_enrolment),
        date_filter(entity, "timeend", label("timeended", "Time ended"), f"{ue}.timeend", to_enrolment),
        date_filter(entity, "timecreated", label("timecreated", "Time created"), f"{ue}.timecreated", to_enrolment),
        text_filter(entity, "enrol", label("enrol", "Enrolment method"), f"{e}.enrol", to_enrolment),
        text_filter(entity, "role", label("role", "Role"), f"{r}.shortname", enrolment_joins(aliases, "role")),
        date_filter(
            entity,
            "lastaccess",
            label("lastaccess", "Last access"),
            f"{ul}.timeaccess",
            enrolment_joins(aliases, "user_lastaccess"),
        ),
    ]


ENROLMENT = EntityDefinition(
    name="enrolment",
    title=label("entityenrolment", "Enrolment", "core_reportbuilder"),
    table_aliases={
        "user": "u",
        "enrol": "e",
        "user_enrolments": "ue",
        "role": "r",
        "user_lastaccess": "ul",
        "course": "c",
    },
    columns=_columns,
    filters=_filters,
)
