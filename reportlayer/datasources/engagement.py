"""Student engagement datasource."""

from reportlayer.core.datasource import Datasource
from reportlayer.core.entity import ReportEntity
from reportlayer.core.lang import LangString
from reportlayer.entities.samples import SAMPLES
from reportlayer.entities.user import USER


class EngagementDatasource(Datasource):
    """Engagement samples of each user."""

    @classmethod
    def get_name(cls) -> LangString:
        return LangString("engagement", "reportlayer", "Student engagement")

    def initialise(self) -> None:
        user_entity = ReportEntity(USER, self.context)
        user_alias = user_entity.get_table_alias("user")
        self.set_main_table("user", user_alias)
        self.add_entity(user_entity)

        samples_entity = ReportEntity(SAMPLES, self.context).set_table_alias("user", user_alias)
        self.add_entity(samples_entity)

        guest = self.context.generate_param_name()
        self.add_base_condition_sql(
            f"{user_alias}.id <> :{guest} AND {user_alias}.deleted = 0",
            {guest: self.context.site_guest_id},
        )

        self.add_columns_from_entity(user_entity.name)
        self.add_columns_from_entity(samples_entity.name)
        self.add_filters_from_entity(samples_entity.name)
        self.add_conditions_from_entity(user_entity.name)

    def get_default_columns(self) -> list[str]:
        return ["user:fullname", "samples:starttime", "samples:endtime", "samples:studentengagement"]

    def get_default_filters(self) -> list[str]:
        return ["samples:starttime", "samples:endtime", "samples:studentengagement"]

    def get_default_conditions(self) -> list[str]:
        return ["user:fullname"]
