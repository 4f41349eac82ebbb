"""Join fragments and join deduplication."""

from typing import Any, Literal

import sqlglot
from pydantic import BaseModel, Field, model_validator
from sqlglot.errors import SqlglotError

from reportlayer.core.identifiers import validate_identifier
from reportlayer.validation import ConfigurationError


def normalize_predicate(predicate: str) -> str:
    """Normalize a join predicate so that formatting differences compare equal.

    SQLGlot re-renders the predicate with canonical spacing and lowercase
    identifiers. Predicates SQLGlot cannot parse are compared with collapsed
    whitespace instead.
    """
    try:
        return sqlglot.parse_one(predicate).sql(normalize=True)
    except SqlglotError:
        return " ".join(predicate.split()).lower()


class JoinFragment(BaseModel):
    """A SQL join clause plus the alias it introduces.

    Either ``table`` (a logical table name, prefixed when rendered) or
    ``subquery`` (derived table SQL) must be given.

    Example:
        JoinFragment(table="enrol", alias="e", predicate="e.id = ue.enrolid")
    """

    kind: Literal["inner", "left"] = Field("inner", description="Join type")
    table: str | None = Field(None, description="Logical table name")
    subquery: str | None = Field(None, description="Derived table SQL")
    alias: str = Field(..., description="Alias introduced by the join")
    predicate: str = Field(..., description="ON condition")
    params: dict[str, Any] = Field(default_factory=dict, description="Bound parameters used by the join")

    @model_validator(mode="after")
    def validate_source(self) -> "JoinFragment":
        if (self.table is None) == (self.subquery is None):
            raise ConfigurationError(f"Join '{self.alias}' must have exactly one of 'table' or 'subquery'")
        validate_identifier(self.alias, "table alias")
        if self.table is not None:
            validate_identifier(self.table, "table name")
        return self

    def __hash__(self) -> int:
        return hash(self.key)

    @property
    def source(self) -> str:
        """Table name or normalized subquery text the alias points to."""
        if self.table is not None:
            return self.table
        return " ".join(self.subquery.split())

    @property
    def key(self) -> tuple[str, str]:
        """Deduplication key: alias plus whitespace-insensitive predicate."""
        return (self.alias, normalize_predicate(self.predicate))

    def to_sql(self, table_prefix: str = "") -> str:
        """Render the join clause.

        Args:
            table_prefix: Prefix prepended to logical table names (e.g., 'mdl_')

        Returns:
            SQL join clause
        """
        keyword = "INNER JOIN" if self.kind == "inner" else "LEFT JOIN"
        if self.table is not None:
            source = f"{table_prefix}{self.table}"
        else:
            source = f"({self.subquery})"
        return f"{keyword} {source} {self.alias} ON {self.predicate}"


class JoinRegistry:
    """Ordered set of join fragments.

    Identical fragments are kept once, in first-registration order. Two
    fragments that introduce the same alias for different tables, or with
    different predicates or join kinds, cannot both be part of one query.
    """

    def __init__(self):
        self._fragments: dict[tuple[str, str], JoinFragment] = {}
        self._aliases: dict[str, JoinFragment | str] = {}

    def __len__(self) -> int:
        return len(self._fragments)

    def __contains__(self, fragment: JoinFragment) -> bool:
        return fragment.key in self._fragments

    def reserve_alias(self, alias: str, table: str) -> None:
        """Record an alias that is not introduced by a join (the main table).

        Raises:
            ConfigurationError: If the alias is already taken
        """
        existing = self._aliases.get(alias)
        if existing is not None and existing != table:
            raise ConfigurationError(f"Alias '{alias}' is already used for {self._describe(existing)}")
        self._aliases[alias] = table

    def register(self, fragment: JoinFragment) -> bool:
        """Add a fragment unless an identical one is already registered.

        Args:
            fragment: Join fragment to add

        Returns:
            True if the fragment was added, False if it was a duplicate

        Raises:
            ConfigurationError: If the fragment's alias clashes with a different join
                or with the same join of another kind
        """
        if fragment.key in self._fragments:
            first = self._fragments[fragment.key]
            if first.source != fragment.source:
                raise ConfigurationError(
                    f"Alias '{fragment.alias}' is used for both {self._describe(first)} "
                    f"and {self._describe(fragment)}"
                )
            if first.kind != fragment.kind:
                raise ConfigurationError(
                    f"Alias '{fragment.alias}' is joined both as {first.kind} and {fragment.kind} join"
                )
            return False

        existing = self._aliases.get(fragment.alias)
        if existing is not None:
            if isinstance(existing, str) or existing.source != fragment.source:
                raise ConfigurationError(
                    f"Alias '{fragment.alias}' is used for both {self._describe(existing)} "
                    f"and {self._describe(fragment)}"
                )
            raise ConfigurationError(
                f"Alias '{fragment.alias}' is joined with conflicting predicates: "
                f"'{existing.predicate}' and '{fragment.predicate}'"
            )

        self._fragments[fragment.key] = fragment
        self._aliases[fragment.alias] = fragment
        return True

    def register_all(self, fragments: list[JoinFragment]) -> None:
        for fragment in fragments:
            self.register(fragment)

    def fragments(self) -> list[JoinFragment]:
        """Registered fragments in first-registration order."""
        return list(self._fragments.values())

    def aliases(self) -> set[str]:
        return set(self._aliases)

    def params(self) -> dict[str, Any]:
        """Bound parameters of all registered fragments."""
        params = {}
        for fragment in self._fragments.values():
            params.update(fragment.params)
        return params

    def to_sql(self, table_prefix: str = "") -> str:
        return "\n".join(fragment.to_sql(table_prefix) for fragment in self._fragments.values())

    @staticmethod
    def _describe(target: "JoinFragment | str") -> str:
        if isinstance(target, str):
            return f"table '{target}'"
        if target.table is not None:
            return f"table '{target.table}'"
        return "a subquery"
