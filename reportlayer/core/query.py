"""Composed report queries."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from reportlayer.core.column import Column
from reportlayer.core.join import JoinFragment


@dataclass
class SelectedColumn:
    """A column in the SELECT list and the aliases of its fields."""

    identity: str
    column: Column
    aliases: list[str] = field(default_factory=list)


@dataclass
class ComposedQuery:
    """SQL text, bound parameters and the columns needed to format rows.

    The query is executed elsewhere; ``format_row`` turns each fetched row
    into display strings using the column formatters.

    Example::

        query = datasource.compose()
        rows = adapter.fetchall(adapter.execute(query.sql, query.params))
        for row in query.format_rows(rows):
            print(row["user:fullname"])
    """

    sql: str
    params: dict[str, Any]
    columns: list[SelectedColumn] = field(default_factory=list)
    joins: list[JoinFragment] = field(default_factory=list)

    def __str__(self) -> str:
        return self.sql

    @property
    def field_aliases(self) -> list[str]:
        return [alias for selected in self.columns for alias in selected.aliases]

    def format_row(self, row: Mapping[str, Any] | Sequence[Any]) -> dict[str, str]:
        """Format one result row.

        Args:
            row: Mapping keyed by field alias, or a sequence in SELECT order

        Returns:
            Column identity -> display string
        """
        formatted = {}
        if isinstance(row, Mapping):
            for selected in self.columns:
                values = [row.get(alias) for alias in selected.aliases]
                formatted[selected.identity] = selected.column.format_value(values)
            return formatted

        position = 0
        for selected in self.columns:
            width = len(selected.aliases)
            values = list(row[position : position + width])
            position += width
            formatted[selected.identity] = selected.column.format_value(values)
        return formatted

    def format_rows(self, rows: Sequence[Mapping[str, Any] | Sequence[Any]]) -> list[dict[str, str]]:
        return [self.format_row(row) for row in rows]
