"""Per-build report context."""

from pydantic import BaseModel, Field, PrivateAttr, field_validator

from reportlayer.core.catalog import CatalogSnapshot
from reportlayer.core.formatting import DEFAULT_DATE_FORMAT
from reportlayer.core.identifiers import validate_table_prefix


class ReportContext(BaseModel):
    """Everything a report build needs to know about its environment.

    Passed explicitly to entities and datasources instead of being read from
    request or session globals. A context belongs to a single report build.
    """

    user_id: int = Field(0, description="Current user id")
    viewed_user_id: int | None = Field(None, description="User whose profile page the report is shown on")
    course_id: int = Field(0, description="Course the report is restricted to (0 for site level)")
    site_guest_id: int = Field(1, description="Id of the site guest user")
    catalog: CatalogSnapshot = Field(default_factory=CatalogSnapshot, description="Schema metadata snapshot")
    table_prefix: str = Field("", description="Prefix of physical table names")
    date_format: str = Field(DEFAULT_DATE_FORMAT, description="strftime format for timestamps")
    timezone: str = Field("UTC", description="Viewer timezone")
    wwwroot: str = Field("", description="Base URL of the host application")

    _param_counter: int = PrivateAttr(default=0)

    @field_validator("table_prefix")
    @classmethod
    def validate_prefix(cls, v: str) -> str:
        return validate_table_prefix(v)

    @property
    def target_user_id(self) -> int:
        """User the user-specific columns describe."""
        if self.viewed_user_id is not None:
            return self.viewed_user_id
        return self.user_id

    def generate_param_name(self, prefix: str = "rbparam") -> str:
        """Return a parameter name not handed out before in this context."""
        name = f"{prefix}{self._param_counter}"
        self._param_counter += 1
        return name
