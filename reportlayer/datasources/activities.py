"""Course activities datasource."""

from reportlayer.core.datasource import Datasource
from reportlayer.core.entity import ReportEntity
from reportlayer.core.lang import LangString
from reportlayer.entities.course_modules import COURSE_MODULES


class ActivitiesDatasource(Datasource):
    """Visible activities of the report's course."""

    @classmethod
    def get_name(cls) -> LangString:
        return LangString("activities", "core", "Activities")

    def initialise(self) -> None:
        entity = ReportEntity(COURSE_MODULES, self.context)
        cm = entity.get_table_alias("course_modules")
        self.set_main_table("course_modules", cm)
        self.add_entity(entity)

        course = self.context.generate_param_name()
        self.add_base_condition_sql(
            f"{cm}.course = :{course} AND {cm}.visible = 1",
            {course: self.context.course_id},
        )

        self.add_columns_from_entity(entity.name)
        self.add_filters_from_entity(entity.name)
        self.add_conditions_from_entity(entity.name)

    def get_default_columns(self) -> list[str]:
        return ["course_modules:type", "course_modules:name", "course_modules:duedate"]

    def get_default_filters(self) -> list[str]:
        return ["course_modules:type", "course_modules:name"]

    def get_default_conditions(self) -> list[str]:
        return ["course_modules:type", "course_modules:name"]
