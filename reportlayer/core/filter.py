"""Report filter definitions and the SQL each filter widget produces."""

from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, Field, PrivateAttr

from reportlayer.core.join import JoinFragment
from reportlayer.core.lang import LangString
from reportlayer.validation import ConfigurationError

if TYPE_CHECKING:
    from reportlayer.core.context import ReportContext

FilterKind = Literal["text", "date", "boolean_select", "select"]

OPERATORS: dict[str, tuple[str, ...]] = {
    "text": (
        "any",
        "contains",
        "does_not_contain",
        "is_equal_to",
        "is_not_equal_to",
        "starts_with",
        "ends_with",
        "is_empty",
        "is_not_empty",
    ),
    "date": ("any", "range", "is_empty", "is_not_empty"),
    "boolean_select": ("any", "yes", "no"),
    "select": ("any", "is_equal_to", "is_not_equal_to"),
}


class FilterValue(BaseModel):
    """A user-supplied filter setting."""

    operator: str = Field("any", description="Widget operator (e.g., 'contains', 'range')")
    value: Any = Field(None, description="Operand")
    value_to: Any = Field(None, description="Upper bound for range operators")


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class Filter(BaseModel):
    """Queryable condition exposed to report users.

    The same object can be registered as a condition, restricting a report
    without being shown as an interactive filter.
    """

    kind: FilterKind = Field(..., description="Filter widget kind")
    name: str = Field(..., description="Filter name, unique within its entity")
    label: LangString = Field(..., description="Display label lookup")
    entity_name: str = Field(..., description="Owning entity name")
    sql: str = Field(..., description="SQL field expression the filter applies to")
    joins: list[JoinFragment] = Field(default_factory=list, description="Joins the field depends on")
    options: dict[str, str] = Field(default_factory=dict, description="Choices for select filters")

    _frozen: bool = PrivateAttr(default=False)

    def __hash__(self) -> int:
        return hash(self.unique_identifier)

    @property
    def unique_identifier(self) -> str:
        return f"{self.entity_name}:{self.name}"

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> "Filter":
        self._frozen = True
        return self

    def _check_mutable(self) -> None:
        if self._frozen:
            raise ConfigurationError(f"Filter '{self.unique_identifier}' is already registered and cannot be changed")

    def add_join(self, join: JoinFragment) -> "Filter":
        self._check_mutable()
        if join not in self.joins:
            self.joins.append(join)
        return self

    def add_joins(self, joins: list[JoinFragment]) -> "Filter":
        for join in joins:
            self.add_join(join)
        return self

    def set_options(self, options: dict[str, str]) -> "Filter":
        self._check_mutable()
        self.options = dict(options)
        return self

    def get_sql(self, value: FilterValue, context: "ReportContext") -> tuple[str, dict[str, Any]]:
        """Build the WHERE predicate for a filter setting.

        Args:
            value: Filter setting
            context: Report context supplying fresh parameter names

        Returns:
            (predicate, params) tuple; the predicate is empty for 'any'

        Raises:
            ConfigurationError: If the operator is not valid for this filter kind
        """
        operators = OPERATORS[self.kind]
        if value.operator not in operators:
            raise ConfigurationError(
                f"Filter '{self.unique_identifier}' does not support operator '{value.operator}'. "
                f"Must be one of: {', '.join(operators)}"
            )
        if value.operator == "any":
            return "", {}

        if self.kind == "text":
            return self._text_sql(value, context)
        elif self.kind == "date":
            return self._date_sql(value, context)
        elif self.kind == "boolean_select":
            if value.operator == "yes":
                return f"COALESCE({self.sql}, 0) <> 0", {}
            return f"COALESCE({self.sql}, 0) = 0", {}
        else:
            return self._select_sql(value, context)

    def _text_sql(self, value: FilterValue, context: "ReportContext") -> tuple[str, dict[str, Any]]:
        # Text widgets also apply to numeric fields
        field = f"CAST({self.sql} AS VARCHAR)"
        if value.operator == "is_empty":
            return f"COALESCE({field}, '') = ''", {}
        if value.operator == "is_not_empty":
            return f"COALESCE({field}, '') <> ''", {}

        text = "" if value.value is None else str(value.value)
        param = context.generate_param_name()
        if value.operator == "is_equal_to":
            return f"LOWER({field}) = LOWER(:{param})", {param: text}
        if value.operator == "is_not_equal_to":
            return f"LOWER({field}) <> LOWER(:{param})", {param: text}

        patterns = {
            "contains": f"%{_escape_like(text)}%",
            "does_not_contain": f"%{_escape_like(text)}%",
            "starts_with": f"{_escape_like(text)}%",
            "ends_with": f"%{_escape_like(text)}",
        }
        negate = "NOT " if value.operator == "does_not_contain" else ""
        return (
            f"LOWER({field}) {negate}LIKE LOWER(:{param}) ESCAPE '\\'",
            {param: patterns[value.operator]},
        )

    def _date_sql(self, value: FilterValue, context: "ReportContext") -> tuple[str, dict[str, Any]]:
        field = self.sql
        if value.operator == "is_empty":
            return f"COALESCE({field}, 0) = 0", {}
        if value.operator == "is_not_empty":
            return f"COALESCE({field}, 0) <> 0", {}

        clauses = []
        params = {}
        for bound, operator in ((value.value, ">="), (value.value_to, "<=")):
            if bound is None:
                continue
            try:
                timestamp = int(bound)
            except (TypeError, ValueError) as e:
                raise ConfigurationError(
                    f"Filter '{self.unique_identifier}' expects unix timestamps, got {bound!r}"
                ) from e
            param = context.generate_param_name()
            clauses.append(f"{field} {operator} :{param}")
            params[param] = timestamp
        if not clauses:
            return "", {}
        return " AND ".join(clauses), params

    def _select_sql(self, value: FilterValue, context: "ReportContext") -> tuple[str, dict[str, Any]]:
        key = "" if value.value is None else str(value.value)
        if self.options and key not in self.options:
            raise ConfigurationError(f"Filter '{self.unique_identifier}' has no option '{key}'")
        param = context.generate_param_name()
        operator = "=" if value.operator == "is_equal_to" else "<>"
        return f"{self.sql} {operator} :{param}", {param: key}
