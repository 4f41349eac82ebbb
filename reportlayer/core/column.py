"""Report column definitions."""

from typing import Any, Callable, Literal

from pydantic import BaseModel, Field, PrivateAttr

from reportlayer.core.join import JoinFragment
from reportlayer.core.lang import LangString
from reportlayer.validation import ConfigurationError

ColumnType = Literal["text", "integer", "timestamp"]
COLUMN_TYPES = ("text", "integer", "timestamp")


class Column(BaseModel):
    """Reportable field.

    Built fluently; every builder method mutates the column in place and
    returns it:

        Column(name="email", label=LangString("email"), entity_name="user")
            .add_field("u.email")
            .set_is_sortable(True)

    Once an entity registers the column it is frozen and builder calls raise
    ConfigurationError.
    """

    name: str = Field(..., description="Column name, unique within its entity")
    label: LangString = Field(..., description="Display label lookup")
    entity_name: str = Field(..., description="Owning entity name")
    type: ColumnType = Field("text", description="Semantic type")
    fields: list[str] = Field(default_factory=list, description="SQL field expressions")
    joins: list[JoinFragment] = Field(default_factory=list, description="Joins the fields depend on")
    is_sortable: bool = Field(False, description="Whether the report can be sorted by this column")
    callbacks: list[Callable[[Any], str]] = Field(
        default_factory=list, exclude=True, description="Formatters applied to the raw value"
    )

    _frozen: bool = PrivateAttr(default=False)

    def __hash__(self) -> int:
        return hash(self.unique_identifier)

    @property
    def unique_identifier(self) -> str:
        return f"{self.entity_name}:{self.name}"

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> "Column":
        self._frozen = True
        return self

    def _check_mutable(self) -> None:
        if self._frozen:
            raise ConfigurationError(f"Column '{self.unique_identifier}' is already registered and cannot be changed")

    def add_field(self, sql: str) -> "Column":
        self._check_mutable()
        self.fields.append(sql)
        return self

    def add_fields(self, *sql: str) -> "Column":
        """Add one or more field expressions.

        Accepts separate arguments or a single comma separated string
        (``"u.firstname, u.lastname"``).
        """
        self._check_mutable()
        for expression in sql:
            self.fields.extend(part.strip() for part in expression.split(",") if part.strip())
        return self

    def add_join(self, join: JoinFragment) -> "Column":
        self._check_mutable()
        if join not in self.joins:
            self.joins.append(join)
        return self

    def add_joins(self, joins: list[JoinFragment]) -> "Column":
        for join in joins:
            self.add_join(join)
        return self

    def set_type(self, column_type: str) -> "Column":
        self._check_mutable()
        if column_type not in COLUMN_TYPES:
            raise ConfigurationError(
                f"Column '{self.unique_identifier}' has invalid type '{column_type}'. "
                f"Must be one of: {', '.join(COLUMN_TYPES)}"
            )
        self.type = column_type
        return self

    def set_is_sortable(self, sortable: bool) -> "Column":
        self._check_mutable()
        self.is_sortable = sortable
        return self

    def add_callback(self, callback: Callable[[Any], str]) -> "Column":
        self._check_mutable()
        self.callbacks.append(callback)
        return self

    def set_callback(self, callback: Callable[[Any], str]) -> "Column":
        """Replace any existing callbacks with a single one."""
        self._check_mutable()
        self.callbacks = [callback]
        return self

    def format_value(self, values: list[Any]) -> str:
        """Format raw field values for display.

        The first field value is passed through each callback in turn. Without
        callbacks, non-null values are joined with a space.

        Args:
            values: Raw values, one per field

        Returns:
            Display string
        """
        if self.callbacks:
            value = values[0] if values else None
            for callback in self.callbacks:
                value = callback(value)
            return "" if value is None else str(value)

        parts = [str(value) for value in values if value is not None]
        return " ".join(parts)
