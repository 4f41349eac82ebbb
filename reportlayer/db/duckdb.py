"""DuckDB query executor."""

import re
from typing import Any

import duckdb

from reportlayer.db.base import BaseDatabaseAdapter
from reportlayer.validation import TransientIOError

# ``:name`` placeholders, skipping ``::type`` casts
_NAMED_PARAM = re.compile(r"(?<![:\w]):([A-Za-z_][A-Za-z0-9_]*)")

_TRANSIENT_ERRORS = (duckdb.IOException, duckdb.ConnectionException)


class DuckDBAdapter(BaseDatabaseAdapter):
    """Runs report queries on a DuckDB database.

    Composed queries use ``:name`` placeholders; DuckDB spells them
    ``$name`` and rejects parameters the statement does not use, so both are
    adjusted before execution.
    """

    def __init__(self, path: str = ":memory:"):
        """Open a database.

        Args:
            path: Database file, or ":memory:" for a scratch database
        """
        try:
            self.conn = duckdb.connect(path)
        except _TRANSIENT_ERRORS as e:
            raise TransientIOError(f"Could not open DuckDB database {path}: {e}") from e

    def execute(self, sql: str, params: dict[str, Any] | list[Any] | None = None) -> Any:
        if isinstance(params, dict):
            used = set(_NAMED_PARAM.findall(sql))
            sql = _NAMED_PARAM.sub(r"$\1", sql)
            params = {name: value for name, value in params.items() if name in used}
        try:
            if params:
                return self.conn.execute(sql, params)
            return self.conn.execute(sql)
        except _TRANSIENT_ERRORS as e:
            raise TransientIOError(f"DuckDB query failed: {e}") from e

    def fetchone(self, result: Any) -> tuple | None:
        return result.fetchone()

    def fetchall(self, result: Any) -> list[tuple]:
        return result.fetchall()

    def get_tables(self) -> list[dict]:
        rows = self.execute(
            "SELECT table_name, schema_name FROM duckdb_tables() "
            "WHERE schema_name NOT IN ('information_schema', 'pg_catalog') ORDER BY table_name"
        ).fetchall()
        return [{"table_name": table, "schema": schema} for table, schema in rows]

    def get_columns(self, table_name: str, schema: str | None = None) -> list[dict]:
        sql = "SELECT column_name, data_type FROM duckdb_columns() WHERE table_name = :table_name"
        params = {"table_name": table_name}
        if schema:
            sql += " AND schema_name = :schema"
            params["schema"] = schema
        rows = self.execute(sql, params).fetchall()
        return [{"column_name": column, "data_type": data_type} for column, data_type in rows]

    def close(self) -> None:
        self.conn.close()

    @property
    def dialect(self) -> str:
        return "duckdb"

    @property
    def raw_connection(self) -> Any:
        return self.conn

    @classmethod
    def from_url(cls, url: str) -> "DuckDBAdapter":
        """Open the database named by a ``duckdb:///path`` URL.

        ``duckdb:///:memory:`` and a bare ``duckdb://`` open a scratch database.
        """
        if not url.startswith("duckdb://"):
            raise ValueError(f"Invalid DuckDB URL: {url}")

        db_path = url[len("duckdb://") :]
        if db_path in ("/:memory:", ":memory:", "", "/"):
            db_path = ":memory:"
        elif db_path.startswith("//"):
            # duckdb:////abs/path.duckdb
            db_path = db_path[1:]

        return cls(db_path)
