"""Datasources: entities composed against a base table."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Literal

from pydantic import BaseModel, Field

from reportlayer.core.column import Column
from reportlayer.core.context import ReportContext
from reportlayer.core.entity import Entity
from reportlayer.core.filter import Filter, FilterValue
from reportlayer.core.identifiers import validate_identifier
from reportlayer.core.join import JoinFragment, JoinRegistry
from reportlayer.core.lang import LangString
from reportlayer.core.query import ComposedQuery, SelectedColumn
from reportlayer.validation import ConfigurationError, validate_datasource_defaults

logger = logging.getLogger(__name__)


class ActionButton(BaseModel):
    """Bulk action offered next to the report (e.g., email selected users).

    The action itself is implemented by whatever serves ``form_action``.
    """

    form_action: str = Field(..., description="Endpoint the selected rows are posted to")
    button_value: LangString = Field(..., description="Button label lookup")
    button_id: str = Field(..., description="Button identifier")


class Datasource(ABC):
    """Base class for report datasources.

    Subclasses implement ``initialise()``, which sets the main table, attaches
    entities, installs base conditions and picks the exposed columns, filters
    and conditions. ``build()`` runs it once and checks the default lists
    resolve; ``compose()`` turns a selection into SQL.
    """

    def __init__(self, context: ReportContext | None = None):
        """Initialize datasource.

        Args:
            context: Report context shared by every entity of this datasource
        """
        self.context = context or ReportContext()
        self._main_table: str | None = None
        self._main_alias: str | None = None
        self._entities: dict[str, Entity] = {}
        self._alias_tables: dict[str, str] = {}
        self._joins = JoinRegistry()
        self._datasource_joins: list[JoinFragment] = []
        self._base_conditions: list[str] = []
        self._base_params: dict[str, Any] = {}
        self._columns: dict[str, tuple[Column, Entity]] = {}
        self._filters: dict[str, tuple[Filter, Entity]] = {}
        self._conditions: dict[str, tuple[Filter, Entity]] = {}
        self._action_buttons: list[ActionButton] = []
        self._downloadable = False
        self._built = False

    @classmethod
    @abstractmethod
    def get_name(cls) -> LangString:
        """User friendly name of the datasource."""
        raise NotImplementedError

    @abstractmethod
    def initialise(self) -> None:
        """Set up the main table, entities, conditions and exposed items."""
        raise NotImplementedError

    @abstractmethod
    def get_default_columns(self) -> list[str]:
        """Column identities added to a newly created report."""
        raise NotImplementedError

    @abstractmethod
    def get_default_filters(self) -> list[str]:
        """Filter identities added to a newly created report."""
        raise NotImplementedError

    @abstractmethod
    def get_default_conditions(self) -> list[str]:
        """Condition identities added to a newly created report."""
        raise NotImplementedError

    def build(self) -> "Datasource":
        """Run ``initialise()`` once and validate the default lists.

        Returns:
            self

        Raises:
            ConfigurationError: If composition fails or a default identity
                does not resolve
        """
        if self._built:
            return self

        self.initialise()
        if self._main_table is None:
            raise ConfigurationError(f"Datasource '{type(self).__name__}' did not set a main table")

        errors = validate_datasource_defaults(self)
        if errors:
            raise ConfigurationError(
                f"Datasource '{type(self).__name__}' validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )

        self._built = True
        logger.debug(
            "Built datasource %s: %d entities, %d columns, %d filters, %d conditions, %d joins",
            type(self).__name__,
            len(self._entities),
            len(self._columns),
            len(self._filters),
            len(self._conditions),
            len(self._joins),
        )
        return self

    # Composition steps used by initialise()

    def set_main_table(self, table: str, alias: str) -> None:
        validate_identifier(table, "table name")
        validate_identifier(alias, "table alias")
        self._claim_alias(alias, table, "the main table")
        self._joins.reserve_alias(alias, table)
        self._main_table = table
        self._main_alias = alias

    def add_entity(self, entity: Entity) -> None:
        """Attach an entity.

        The entity is initialised, its table aliases are checked against the
        main table and every entity attached before it, and all joins its
        columns and filters need are registered so that conflicting joins
        fail here rather than when the report runs.

        Raises:
            ConfigurationError: On a duplicate entity name or alias clash
        """
        existing = self._entities.get(entity.name)
        if existing is entity:
            return
        if existing is not None:
            raise ConfigurationError(f"An entity named '{entity.name}' is already attached")

        entity.initialise()

        for table, alias in entity.get_table_aliases().items():
            self._claim_alias(alias, table, f"entity '{entity.name}'")

        entity_joins = entity.get_joins()
        self._joins.register_all(entity_joins)
        for item in [*entity.get_columns(), *entity.get_filters(), *entity.get_conditions()]:
            self._joins.register_all(item.joins)

        self._entities[entity.name] = entity

    def _claim_alias(self, alias: str, table: str, owner: str) -> None:
        existing = self._alias_tables.get(alias)
        if existing is not None and existing != table:
            raise ConfigurationError(
                f"Alias '{alias}' of {owner} is already used for table '{existing}'; "
                f"cannot also use it for table '{table}'"
            )
        self._alias_tables[alias] = table

    def add_join(self, join: JoinFragment) -> None:
        """Register a datasource level join used by every query."""
        if self._joins.register(join):
            self._datasource_joins.append(join)

    def add_base_condition_sql(self, sql: str, params: dict[str, Any] | None = None) -> None:
        """Restrict every query of this datasource.

        Parameter names should come from ``self.context.generate_param_name()``.

        Raises:
            ConfigurationError: If a parameter name is already bound
        """
        params = params or {}
        clashes = sorted(set(params) & set(self._base_params))
        if clashes:
            raise ConfigurationError(f"Base condition parameter(s) already bound: {', '.join(clashes)}")
        self._base_conditions.append(sql)
        self._base_params.update(params)

    def _get_entity(self, entity_name: str) -> Entity:
        if entity_name not in self._entities:
            raise ConfigurationError(f"No entity named '{entity_name}' is attached")
        return self._entities[entity_name]

    def add_columns_from_entity(self, entity_name: str) -> None:
        entity = self._get_entity(entity_name)
        for column in entity.get_columns():
            self._columns[column.unique_identifier] = (column, entity)

    def add_filters_from_entity(self, entity_name: str) -> None:
        entity = self._get_entity(entity_name)
        for filter_ in entity.get_filters():
            self._filters[filter_.unique_identifier] = (filter_, entity)

    def add_conditions_from_entity(self, entity_name: str) -> None:
        entity = self._get_entity(entity_name)
        for condition in entity.get_conditions():
            self._conditions[condition.unique_identifier] = (condition, entity)

    def add_action_button(self, form_action: str, button_value: LangString, button_id: str) -> None:
        self._action_buttons.append(
            ActionButton(form_action=form_action, button_value=button_value, button_id=button_id)
        )

    def set_downloadable(self, downloadable: bool) -> None:
        self._downloadable = downloadable

    # Accessors

    @property
    def is_downloadable(self) -> bool:
        return self._downloadable

    @property
    def main_table(self) -> tuple[str | None, str | None]:
        return self._main_table, self._main_alias

    def get_entities(self) -> list[Entity]:
        return list(self._entities.values())

    def get_columns(self) -> dict[str, Column]:
        return {identity: column for identity, (column, _) in self._columns.items()}

    def get_filters(self) -> dict[str, Filter]:
        return {identity: filter_ for identity, (filter_, _) in self._filters.items()}

    def get_conditions(self) -> dict[str, Filter]:
        return {identity: condition for identity, (condition, _) in self._conditions.items()}

    def get_column(self, identity: str) -> Column:
        return self._resolve(self._columns, identity, "column")[0]

    def get_filter(self, identity: str) -> Filter:
        return self._resolve(self._filters, identity, "filter")[0]

    def get_condition(self, identity: str) -> Filter:
        return self._resolve(self._conditions, identity, "condition")[0]

    def get_action_buttons(self) -> list[ActionButton]:
        return list(self._action_buttons)

    def get_base_conditions(self) -> tuple[list[str], dict[str, Any]]:
        return list(self._base_conditions), dict(self._base_params)

    @staticmethod
    def _resolve(items: dict, identity: str, kind: str) -> tuple:
        if identity not in items:
            raise ConfigurationError(f"Unknown {kind} '{identity}'")
        return items[identity]

    # Query composition

    def compose(
        self,
        columns: list[str] | None = None,
        filters: dict[str, FilterValue] | None = None,
        conditions: dict[str, FilterValue] | None = None,
        sort: list[tuple[str, Literal["asc", "desc"]]] | None = None,
    ) -> ComposedQuery:
        """Compose the report query.

        Args:
            columns: Column identities (defaults to the default columns)
            filters: Filter identity -> user filter setting
            conditions: Condition identity -> condition setting
            sort: (column identity, 'asc' | 'desc') pairs

        Returns:
            ComposedQuery with SQL text, parameters and selected columns

        Raises:
            ConfigurationError: If any identity does not resolve, a sort
                column is not sortable, or no columns are selected
        """
        self.build()

        identities = list(columns) if columns is not None else self.get_default_columns()
        if not identities:
            raise ConfigurationError("A report needs at least one column")

        joins = JoinRegistry()
        joins.reserve_alias(self._main_alias, self._main_table)
        joins.register_all(self._datasource_joins)

        selected: list[SelectedColumn] = []
        select_exprs = []
        for index, identity in enumerate(identities):
            column, entity = self._resolve(self._columns, identity, "column")
            joins.register_all(entity.get_joins())
            joins.register_all(column.joins)
            aliases = []
            for position, expression in enumerate(column.fields):
                alias = f"c{index}_{column.name}" + (f"_{position}" if position else "")
                aliases.append(alias)
                select_exprs.append(f"{expression} AS {alias}")
            selected.append(SelectedColumn(identity=identity, column=column, aliases=aliases))

        where = [f"({sql})" for sql in self._base_conditions]
        params = dict(self._base_params)

        for items, settings, kind in ((self._conditions, conditions, "condition"), (self._filters, filters, "filter")):
            for identity, value in (settings or {}).items():
                filter_, entity = self._resolve(items, identity, kind)
                sql, filter_params = filter_.get_sql(value, self.context)
                if not sql:
                    continue
                joins.register_all(entity.get_joins())
                joins.register_all(filter_.joins)
                where.append(f"({sql})")
                params.update(filter_params)

        order_by = []
        for identity, direction in sort or []:
            column, entity = self._resolve(self._columns, identity, "column")
            if not column.is_sortable:
                raise ConfigurationError(f"Column '{identity}' is not sortable")
            if direction.lower() not in ("asc", "desc"):
                raise ConfigurationError(f"Invalid sort direction '{direction}' for column '{identity}'")
            joins.register_all(entity.get_joins())
            joins.register_all(column.joins)
            order_by.extend(f"{expression} {direction.upper()}" for expression in column.fields)

        params.update(joins.params())

        prefix = self.context.table_prefix
        lines = [
            "SELECT " + ",\n       ".join(select_exprs),
            f"FROM {prefix}{self._main_table} {self._main_alias}",
        ]
        if len(joins):
            lines.append(joins.to_sql(prefix))
        if where:
            lines.append("WHERE " + "\n  AND ".join(where))
        if order_by:
            lines.append("ORDER BY " + ", ".join(order_by))

        return ComposedQuery(sql="\n".join(lines), params=params, columns=selected, joins=joins.fragments())

