"""Label lookup keys."""

from typing import Callable

from pydantic import BaseModel, Field

# (identifier, component) -> translated text, or None when the key is unknown
StringLookup = Callable[[str, str], "str | None"]


class LangString(BaseModel):
    """Reference to a translatable string.

    Only the lookup key and a fallback text are stored; the string is
    resolved by whoever renders the report.
    """

    identifier: str = Field(..., description="String identifier")
    component: str = Field("core", description="Component owning the string (e.g., 'local_ace')")
    default: str | None = Field(None, description="Fallback text when the lookup has no translation")

    def __init__(self, identifier: str | None = None, component: str = "core", default: str | None = None, **data):
        if identifier is not None:
            data["identifier"] = identifier
        super().__init__(component=component, default=default, **data)

    def __hash__(self) -> int:
        return hash((self.identifier, self.component))

    def resolve(self, lookup: StringLookup | None = None) -> str:
        """Resolve to display text.

        Args:
            lookup: Optional translation lookup

        Returns:
            Translated text, the default text, or a bracketed key
        """
        if lookup is not None:
            text = lookup(self.identifier, self.component)
            if text is not None:
                return text
        if self.default is not None:
            return self.default
        return f"[{self.identifier},{self.component}]"

    def __str__(self) -> str:
        return self.resolve()
