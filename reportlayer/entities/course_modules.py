"""Course module (activity) entity.

The activity name lives in each module's own instance table, so the name and
due date columns join a derived table with one SELECT per installed module.
Which modules exist depends on the deployment, which makes the derived table
a function of the catalog snapshot in the report context.
"""

import logging

from reportlayer.core.catalog import ModuleRecord
from reportlayer.core.column import Column
from reportlayer.core.entity import EntityDefinition, ReportEntity
from reportlayer.core.filter import Filter
from reportlayer.core.formatting import module_icon
from reportlayer.core.identifiers import validate_identifier
from reportlayer.core.join import JoinFragment
from reportlayer.entities.helpers import label, text_column, text_filter, timestamp_column
from reportlayer.validation import UnsafeIdentifierError

logger = logging.getLogger(__name__)

# Instance table column holding the due date, per module
DUE_DATE_FIELDS = {"assign": "duedate"}

EMPTY_MODULE_SELECT = "SELECT 0 AS id, '' AS name, 0 AS module, 0 AS duedate WHERE 1 = 0"


def build_module_union(modules: list[ModuleRecord], course_param: str, table_prefix: str = "") -> str:
    """Build a derived table of (id, name, module, duedate) for every module instance in a course.

    Module names come from the catalog and are embedded as table names, so
    names failing the identifier check are logged and left out.

    Args:
        modules: Installed modules
        course_param: Name of the bound course id parameter
        table_prefix: Prefix of physical table names

    Returns:
        SQL text of the UNION ALL query
    """
    validate_identifier(course_param, "parameter name")
    selects = []
    for module in modules:
        try:
            name = validate_identifier(module.name, "module name")
        except UnsafeIdentifierError as e:
            logger.warning("Skipping module %d: %s", module.id, e)
            continue
        duedate = DUE_DATE_FIELDS.get(name, "0")
        selects.append(
            f"SELECT id, name, {int(module.id)} AS module, {duedate} AS duedate "
            f"FROM {table_prefix}{name} WHERE course = :{course_param}"
        )

    if not selects:
        return EMPTY_MODULE_SELECT
    return " UNION ALL ".join(selects)


def modules_join(entity: ReportEntity) -> JoinFragment:
    cm = entity.get_table_alias("course_modules")
    m = entity.get_table_alias("modules")
    return JoinFragment(table="modules", alias=m, predicate=f"{m}.id = {cm}.module")


def module_instances_join(entity: ReportEntity) -> JoinFragment:
    """Join course modules to their instance records (name and due date)."""
    cm = entity.get_table_alias("course_modules")
    mmj = entity.get_table_alias("module_instances")
    # Named after the alias so rebuilding the join yields an identical fragment
    param = f"{mmj}_courseid"
    context = entity.context
    return JoinFragment(
        subquery=build_module_union(context.catalog.installed_modules(), param, context.table_prefix),
        alias=mmj,
        predicate=f"{mmj}.id = {cm}.instance AND {mmj}.module = {cm}.module",
        params={param: context.course_id},
    )


def _columns(entity: ReportEntity) -> list[Column]:
    m = entity.get_table_alias("modules")
    mmj = entity.get_table_alias("module_instances")
    instances = module_instances_join(entity)

    return [
        # Module icon
        text_column(entity, "type", label("activity", "Activity", "core"), f"{m}.name", [modules_join(entity)])
        .add_callback(module_icon(entity.context.wwwroot)),
        text_column(entity, "name", label("name", "Name", "core"), f"{mmj}.name", [instances]),
        timestamp_column(entity, "duedate", label("due", "Due"), f"{mmj}.duedate", [instances]),
    ]


def _filters(entity: ReportEntity) -> list[Filter]:
    m = entity.get_table_alias("modules")
    mmj = entity.get_table_alias("module_instances")
    return [
        text_filter(entity, "type", label("activity", "Activity", "core"), f"{m}.name", [modules_join(entity)]),
        text_filter(entity, "name", label("name", "Name", "core"), f"{mmj}.name", [module_instances_join(entity)]),
    ]


COURSE_MODULES = EntityDefinition(
    name="course_modules",
    title=label("pluginname", "Activities"),
    table_aliases={
        "course": "ac",
        "course_modules": "acm",
        "modules": "am",
        "module_instances": "mmj",
    },
    columns=_columns,
    filters=_filters,
)
