"""User entity: identity and access columns for site users."""

from reportlayer.core.column import Column
from reportlayer.core.entity import EntityDefinition, ReportEntity
from reportlayer.core.filter import Filter
from reportlayer.core.join import JoinFragment
from reportlayer.entities.helpers import (
    date_filter,
    label,
    text_column,
    text_filter,
    timestamp_column,
    userdate_formatter,
)


def course_lastaccess_join(entity: ReportEntity) -> JoinFragment:
    """Last access record of each user in the report's course.

    The course id is bound as a parameter named after the join alias, so
    building the join twice yields identical fragments.
    """
    user = entity.get_table_alias("user")
    lastaccess = entity.get_table_alias("user_lastaccess")
    param = f"{lastaccess}_courseid"
    return JoinFragment(
        kind="left",
        table="user_lastaccess",
        alias=lastaccess,
        predicate=f"{lastaccess}.userid = {user}.id AND {lastaccess}.courseid = :{param}",
        params={param: entity.context.course_id},
    )


def fullname_sql(entity: ReportEntity) -> str:
    user = entity.get_table_alias("user")
    return f"{user}.firstname || ' ' || {user}.lastname"


def _columns(entity: ReportEntity) -> list[Column]:
    user = entity.get_table_alias("user")
    lastaccess = entity.get_table_alias("user_lastaccess")

    columns = [
        Column(name="fullname", label=label("fullname", "Full name", "core"), entity_name=entity.name)
        .add_fields(f"{user}.firstname", f"{user}.lastname")
        .set_is_sortable(True),
        text_column(entity, "firstname", label("firstname", "First name", "core"), f"{user}.firstname"),
        text_column(entity, "lastname", label("lastname", "Last name", "core"), f"{user}.lastname"),
        text_column(entity, "username", label("username", "Username", "core"), f"{user}.username"),
        text_column(entity, "email", label("email", "Email address", "core"), f"{user}.email"),
        text_column(entity, "idnumber", label("idnumber", "ID number", "core"), f"{user}.idnumber"),
        timestamp_column(entity, "lastaccess", label("lastaccess", "Last access", "core"), f"{user}.lastaccess"),
    ]

    # Last access to the report's course
    columns.append(
        Column(
            name="lastaccessedtocourse",
            label=label("lastaccessedtocourse", "Last access to course"),
            entity_name=entity.name,
        )
        .add_join(course_lastaccess_join(entity))
        .add_field(f"{lastaccess}.timeaccess")
        .set_type("timestamp")
        .set_is_sortable(True)
        .add_callback(userdate_formatter(entity))
    )

    return columns


def _filters(entity: ReportEntity) -> list[Filter]:
    user = entity.get_table_alias("user")
    return [
        text_filter(entity, "fullname", label("fullname", "Full name", "core"), fullname_sql(entity)),
        text_filter(entity, "username", label("username", "Username", "core"), f"{user}.username"),
        text_filter(entity, "email", label("email", "Email address", "core"), f"{user}.email"),
        text_filter(entity, "idnumber", label("idnumber", "ID number", "core"), f"{user}.idnumber"),
        date_filter(entity, "lastaccess", label("lastaccess", "Last access", "core"), f"{user}.lastaccess"),
    ]


USER = EntityDefinition(
    name="user",
    title=label("entityuser", "User", "core_reportbuilder"),
    table_aliases={
        "user": "u",
        "user_lastaccess": "ulc",
    },
    columns=_columns,
    filters=_filters,
)
