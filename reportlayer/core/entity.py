"""Report entities: reusable bundles of table aliases, columns and filters."""

import logging
from typing import Callable, Protocol, runtime_checkable

import sqlglot
from pydantic import BaseModel, Field
from sqlglot import expressions as exp
from sqlglot.errors import SqlglotError

from reportlayer.core.column import Column
from reportlayer.core.context import ReportContext
from reportlayer.core.filter import Filter
from reportlayer.core.identifiers import validate_identifier
from reportlayer.core.join import JoinFragment
from reportlayer.core.lang import LangString
from reportlayer.validation import ConfigurationError

logger = logging.getLogger(__name__)


@runtime_checkable
class Entity(Protocol):
    """Interface a datasource needs from an entity."""

    @property
    def name(self) -> str: ...

    @property
    def title(self) -> LangString: ...

    def get_table_alias(self, table: str) -> str: ...

    def get_table_aliases(self) -> dict[str, str]: ...

    def set_table_alias(self, table: str, alias: str) -> "Entity": ...

    def add_join(self, join: JoinFragment) -> "Entity": ...

    def add_joins(self, joins: list[JoinFragment]) -> "Entity": ...

    def get_joins(self) -> list[JoinFragment]: ...

    def initialise(self) -> "Entity": ...

    def get_columns(self) -> list[Column]: ...

    def get_filters(self) -> list[Filter]: ...

    def get_conditions(self) -> list[Filter]: ...

    def get_column(self, name: str) -> Column: ...

    def get_filter(self, name: str) -> Filter: ...

    def get_condition(self, name: str) -> Filter: ...


class EntityDefinition(BaseModel):
    """Declarative description of an entity.

    The column and filter builders are pure functions of the entity they are
    given (its aliases and report context); they return freshly built specs.
    """

    name: str = Field(..., description="Entity name, used as the identity prefix")
    title: LangString = Field(..., description="Entity title lookup")
    table_aliases: dict[str, str] = Field(..., description="Logical table name -> default alias")
    columns: Callable[["ReportEntity"], list[Column]] = Field(..., description="Column builder")
    filters: Callable[["ReportEntity"], list[Filter]] = Field(..., description="Filter builder")
    filters_as_conditions: bool = Field(True, description="Register every filter as a condition too")

    def __hash__(self) -> int:
        return hash(self.name)


def referenced_aliases(sql: str) -> set[str]:
    """Extract the table qualifiers used by a SQL expression.

    Returns an empty set when the expression cannot be parsed.
    """
    try:
        parsed = sqlglot.parse_one(sql)
    except SqlglotError:
        logger.debug("Could not parse %r for alias checks", sql)
        return set()
    return {col.table for col in parsed.find_all(exp.Column) if col.table}


class ReportEntity:
    """Entity built from an EntityDefinition.

    Mutable until ``initialise()`` returns: aliases can be overridden and
    joins attached. Afterwards the entity and every column and filter it
    built are frozen.
    """

    def __init__(self, definition: EntityDefinition, context: ReportContext | None = None):
        """Initialize entity.

        Args:
            definition: Entity definition
            context: Report context passed to the column and filter builders
        """
        validate_identifier(definition.name, "entity name")
        self.definition = definition
        self.context = context or ReportContext()
        self._aliases: dict[str, str] = {}
        for table, alias in definition.table_aliases.items():
            self._aliases[validate_identifier(table, "table name")] = validate_identifier(alias, "table alias")
        self._joins: list[JoinFragment] = []
        self._columns: dict[str, Column] = {}
        self._filters: dict[str, Filter] = {}
        self._conditions: dict[str, Filter] = {}
        self._initialised = False

    def __repr__(self) -> str:
        return f"ReportEntity({self.name!r})"

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def title(self) -> LangString:
        return self.definition.title

    @property
    def is_initialised(self) -> bool:
        return self._initialised

    def _check_mutable(self) -> None:
        if self._initialised:
            raise ConfigurationError(f"Entity '{self.name}' is already initialised and cannot be changed")

    def get_table_alias(self, table: str) -> str:
        """Get the alias of a table this entity uses.

        Raises:
            ConfigurationError: If the entity does not declare the table
        """
        if table not in self._aliases:
            raise ConfigurationError(f"Entity '{self.name}' does not declare an alias for table '{table}'")
        return self._aliases[table]

    def get_table_aliases(self) -> dict[str, str]:
        return dict(self._aliases)

    def set_table_alias(self, table: str, alias: str) -> "ReportEntity":
        """Override the alias of a declared table."""
        self._check_mutable()
        self.get_table_alias(table)
        self._aliases[table] = validate_identifier(alias, "table alias")
        return self

    def add_join(self, join: JoinFragment) -> "ReportEntity":
        """Attach a join every column and filter of this entity depends on."""
        self._check_mutable()
        if join not in self._joins:
            self._joins.append(join)
        return self

    def add_joins(self, joins: list[JoinFragment]) -> "ReportEntity":
        for join in joins:
            self.add_join(join)
        return self

    def get_joins(self) -> list[JoinFragment]:
        return list(self._joins)

    def initialise(self) -> "ReportEntity":
        """Build, check and register all columns and filters, then freeze.

        Raises:
            ConfigurationError: If a column or filter name is duplicated or an
                expression references an alias the entity does not know
        """
        if self._initialised:
            return self

        for column in self.definition.columns(self):
            self._check_item(column.unique_identifier, column.fields, column.joins)
            if column.name in self._columns:
                raise ConfigurationError(f"Duplicate column '{column.unique_identifier}'")
            self._columns[column.name] = column.freeze()

        for filter_ in self.definition.filters(self):
            self._check_item(filter_.unique_identifier, [filter_.sql], filter_.joins)
            if filter_.name in self._filters:
                raise ConfigurationError(f"Duplicate filter '{filter_.unique_identifier}'")
            self._filters[filter_.name] = filter_.freeze()
            if self.definition.filters_as_conditions:
                self._conditions[filter_.name] = filter_

        self._initialised = True
        logger.debug(
            "Initialised entity %s with %d columns, %d filters, %d conditions",
            self.name,
            len(self._columns),
            len(self._filters),
            len(self._conditions),
        )
        return self

    def _check_item(self, identity: str, expressions: list[str], joins: list[JoinFragment]) -> None:
        if not identity.startswith(f"{self.name}:"):
            raise ConfigurationError(f"'{identity}' was built by entity '{self.name}' under another entity name")
        known = set(self._aliases.values())
        known.update(join.alias for join in self._joins)
        known.update(join.alias for join in joins)
        for expression in expressions:
            unknown = referenced_aliases(expression) - known
            if unknown:
                raise ConfigurationError(
                    f"'{identity}' references unknown alias(es) {', '.join(sorted(unknown))} in '{expression}'"
                )

    def get_columns(self) -> list[Column]:
        return list(self._columns.values())

    def get_filters(self) -> list[Filter]:
        return list(self._filters.values())

    def get_conditions(self) -> list[Filter]:
        return list(self._conditions.values())

    def get_column(self, name: str) -> Column:
        if name not in self._columns:
            raise ConfigurationError(f"Entity '{self.name}' has no column '{name}'")
        return self._columns[name]

    def get_filter(self, name: str) -> Filter:
        if name not in self._filters:
            raise ConfigurationError(f"Entity '{self.name}' has no filter '{name}'")
        return self._filters[name]

    def get_condition(self, name: str) -> Filter:
        if name not in self._conditions:
            raise ConfigurationError(f"Entity '{self.name}' has no condition '{name}'")
        return self._conditions[name]


EntityDefinition.model_rebuild()
