"""Query executor interface."""

from abc import ABC, abstractmethod
from typing import Any


class BaseDatabaseAdapter(ABC):
    """Executes composed report queries and answers schema questions.

    reportlayer itself only assembles SQL text and parameter maps; running
    them is the adapter's job. Implementations raise TransientIOError when
    the database cannot be reached.
    """

    @abstractmethod
    def execute(self, sql: str, params: dict[str, Any] | list[Any] | None = None) -> Any:
        """Run a statement.

        Args:
            sql: Statement text. A dict of params binds ``:name`` placeholders,
                a list binds ``?`` placeholders in order.
            params: Bound parameters

        Returns:
            Backend cursor or relation to pass to the fetch methods
        """
        raise NotImplementedError

    @abstractmethod
    def fetchone(self, result: Any) -> tuple | None:
        """Next row of a result, or None when exhausted."""
        raise NotImplementedError

    @abstractmethod
    def fetchall(self, result: Any) -> list[tuple]:
        """Remaining rows of a result."""
        raise NotImplementedError

    @abstractmethod
    def get_tables(self) -> list[dict]:
        """Physical tables visible to the connection.

        Returns:
            Dicts with 'table_name' and 'schema' keys, used to build the
            catalog snapshot
        """
        raise NotImplementedError

    @abstractmethod
    def get_columns(self, table_name: str, schema: str | None = None) -> list[dict]:
        """Columns of one physical table.

        Returns:
            Dicts with 'column_name' and 'data_type' keys
        """
        raise NotImplementedError

    @abstractmethod
    def close(self) -> None:
        raise NotImplementedError

    @property
    @abstractmethod
    def dialect(self) -> str:
        """SQLGlot dialect of the backend (e.g., 'duckdb')."""
        raise NotImplementedError

    @property
    @abstractmethod
    def raw_connection(self) -> Any:
        """Driver connection, for fixtures and maintenance scripts."""
        raise NotImplementedError

    def fetch_dicts(self, result: Any, columns: list[str]) -> list[dict[str, Any]]:
        """Fetch all rows keyed by the given column names."""
        return [dict(zip(columns, row)) for row in self.fetchall(result)]
