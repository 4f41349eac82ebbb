"""Report datasources."""

from reportlayer.core.context import ReportContext
from reportlayer.core.datasource import Datasource
from reportlayer.datasources.activities import ActivitiesDatasource
from reportlayer.datasources.engagement import EngagementDatasource
from reportlayer.datasources.users import UsersDatasource

DATASOURCES: dict[str, type[Datasource]] = {
    "users": UsersDatasource,
    "activities": ActivitiesDatasource,
    "engagement": EngagementDatasource,
}


def get_datasource(name: str, context: ReportContext | None = None) -> Datasource:
    """Instantiate a datasource by name.

    Raises:
        KeyError: If no datasource has that name
    """
    if name not in DATASOURCES:
        raise KeyError(f"Datasource {name} not found")
    return DATASOURCES[name](context)


__all__ = ["DATASOURCES", "ActivitiesDatasource", "EngagementDatasource", "UsersDatasource", "get_datasource"]
