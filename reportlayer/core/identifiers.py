"""Safe SQL identifier checks."""

import re

from reportlayer.validation import UnsafeIdentifierError

# Letters, digits and underscores only. Catalog values such as module names
# are embedded in SQL text, so nothing else is allowed through.
_IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_PREFIX_PATTERN = re.compile(r"^[A-Za-z0-9_]*$")


def is_safe_identifier(value: object) -> bool:
    """Check whether a value can be embedded in SQL text as an identifier."""
    return isinstance(value, str) and bool(_IDENTIFIER_PATTERN.match(value))


def validate_identifier(value: str, name: str = "identifier") -> str:
    """Validate that a value is a safe SQL identifier.

    Allows letters, digits and underscores. Must start with a letter or
    underscore.

    Args:
        value: The identifier value to validate
        name: Human-readable name for error messages (e.g., "table alias", "module name")

    Returns:
        The validated identifier (unchanged if valid)

    Raises:
        UnsafeIdentifierError: If the identifier contains invalid characters
    """
    if not value:
        raise UnsafeIdentifierError(f"Invalid {name}: cannot be empty")

    if not is_safe_identifier(value):
        raise UnsafeIdentifierError(
            f"Invalid {name}: '{value}'. "
            f"Identifiers must start with a letter or underscore and contain only "
            f"letters, digits and underscores."
        )

    return value


def validate_table_prefix(value: str) -> str:
    """Validate a table prefix (may be empty, e.g. '' or 'mdl_')."""
    if not isinstance(value, str) or not _PREFIX_PATTERN.match(value):
        raise UnsafeIdentifierError(
            f"Invalid table prefix: '{value}'. Prefixes may only contain letters, digits and underscores."
        )
    return value
