"""Schema metadata snapshot.

Entities never query the database for metadata themselves. A snapshot is
loaded once per report build and passed in through the report context, so
the column sets an entity produces are a pure function of the snapshot.
"""

import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from reportlayer.core.identifiers import validate_table_prefix

if TYPE_CHECKING:
    from reportlayer.db.base import BaseDatabaseAdapter

logger = logging.getLogger(__name__)


class ModuleRecord(BaseModel):
    """Activity module registered with the host application."""

    id: int = Field(..., description="Module id (course_modules.module)")
    name: str = Field(..., description="Module name, which is also its instance table name")
    visible: bool = Field(True, description="Whether the module is enabled")
    available: bool = Field(True, description="Whether the module's code is installed")


class CatalogSnapshot(BaseModel):
    """Read-only view of installed modules and existing tables."""

    modules: list[ModuleRecord] = Field(default_factory=list, description="Registered modules")
    tables: set[str] | None = Field(None, description="Logical table names, None when unknown")

    def installed_modules(self) -> list[ModuleRecord]:
        """Visible modules whose code is installed, ordered by id."""
        modules = [m for m in self.modules if m.visible and m.available]
        if self.tables is not None:
            modules = [m for m in modules if m.name in self.tables]
        return sorted(modules, key=lambda m: m.id)

    def has_table(self, name: str) -> bool:
        if self.tables is None:
            return True
        return name in self.tables


def load_catalog(
    adapter: "BaseDatabaseAdapter",
    table_prefix: str = "",
    available_plugins: set[str] | None = None,
) -> CatalogSnapshot:
    """Load a catalog snapshot through a database adapter.

    Args:
        adapter: Database adapter
        table_prefix: Prefix of the host application's tables (e.g., 'mdl_')
        available_plugins: Module names whose code is installed (None means all)

    Returns:
        Catalog snapshot

    Raises:
        TransientIOError: If the database is unavailable
    """
    validate_table_prefix(table_prefix)

    tables = set()
    for row in adapter.get_tables():
        name = row["table_name"]
        if name.startswith(table_prefix):
            tables.add(name[len(table_prefix) :])

    modules = []
    if "modules" in tables:
        result = adapter.execute(f"SELECT id, name, visible FROM {table_prefix}modules ORDER BY id")
        for module_id, name, visible in adapter.fetchall(result):
            available = available_plugins is None or name in available_plugins
            modules.append(ModuleRecord(id=module_id, name=name, visible=bool(visible), available=available))
    else:
        logger.warning("Table %smodules not found, no activity modules available", table_prefix)

    logger.info("Loaded catalog with %d tables and %d modules", len(tables), len(modules))
    return CatalogSnapshot(modules=modules, tables=tables)
