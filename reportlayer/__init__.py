"""reportlayer: declarative report datasources and entities for learning analytics."""

__version__ = "0.1.0"

from reportlayer.core.catalog import CatalogSnapshot, ModuleRecord
from reportlayer.core.column import Column
from reportlayer.core.context import ReportContext
from reportlayer.core.datasource import ActionButton, Datasource
from reportlayer.core.entity import Entity, EntityDefinition, ReportEntity
from reportlayer.core.filter import Filter, FilterValue
from reportlayer.core.join import JoinFragment, JoinRegistry
from reportlayer.core.lang import LangString
from reportlayer.core.query import ComposedQuery
from reportlayer.validation import ConfigurationError, TransientIOError, UnsafeIdentifierError

__all__ = [
    "ActionButton",
    "CatalogSnapshot",
    "Column",
    "ComposedQuery",
    "ConfigurationError",
    "Datasource",
    "Entity",
    "EntityDefinition",
    "Filter",
    "FilterValue",
    "JoinFragment",
    "JoinRegistry",
    "LangString",
    "ModuleRecord",
    "ReportContext",
    "ReportEntity",
    "TransientIOError",
    "UnsafeIdentifierError",
    "get_datasource",
]


def __getattr__(name):  # Lazy import so that importing the core does not load every entity definition
    if name == "get_datasource":
        from reportlayer.datasources import get_datasource  # type: ignore

        return get_datasource
    raise AttributeError(name)
