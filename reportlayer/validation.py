"""Validation and error handling for report composition."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from reportlayer.core.datasource import Datasource


class ValidationError(Exception):
    """Raised when report composition fails validation."""

    pass


class ConfigurationError(ValidationError):
    """Raised when an alias, column, filter or condition reference cannot be resolved.

    Always raised while composing a report, never while fetching rows.
    """

    pass


class UnsafeIdentifierError(ConfigurationError):
    """Raised when a name fails the safe identifier check."""

    pass


class TransientIOError(Exception):
    """Raised when schema metadata or the query executor is unavailable."""

    pass


def validate_datasource_defaults(datasource: "Datasource") -> list[str]:
    """Validate the default columns, filters and conditions of a datasource.

    Args:
        datasource: Datasource whose entities have been attached

    Returns:
        List of validation errors (empty if valid)
    """
    errors = []

    columns = datasource.get_columns()
    for identity in datasource.get_default_columns():
        if identity not in columns:
            errors.append(f"Default column '{identity}' is not registered by any attached entity")

    filters = datasource.get_filters()
    for identity in datasource.get_default_filters():
        if identity not in filters:
            errors.append(f"Default filter '{identity}' is not registered by any attached entity")

    conditions = datasource.get_conditions()
    for identity in datasource.get_default_conditions():
        if identity not in conditions:
            errors.append(f"Default condition '{identity}' is not registered by any attached entity")

    return errors
