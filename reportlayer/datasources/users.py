"""Users datasource."""

from reportlayer.core.datasource import Datasource
from reportlayer.core.entity import ReportEntity
from reportlayer.core.lang import LangString
from reportlayer.entities.course import COURSE
from reportlayer.entities.enrolment import ENROLMENT, enrolment_joins
from reportlayer.entities.user import USER


class UsersDatasource(Datasource):
    """Site users with their enrolments and enrolled courses."""

    @classmethod
    def get_name(cls) -> LangString:
        return LangString("users", "core", "Users")

    def initialise(self) -> None:
        # User entity
        user_entity = ReportEntity(USER, self.context)
        user_alias = user_entity.get_table_alias("user")
        self.set_main_table("user", user_alias)
        self.add_entity(user_entity)

        # Enrolment entity, joined from the user table by its own columns
        enrolment_entity = ReportEntity(ENROLMENT, self.context).set_table_alias("user", user_alias)
        self.add_entity(enrolment_entity)

        # Course entity, reached through the enrolment tables
        course_entity = ReportEntity(COURSE, self.context)
        aliases = enrolment_entity.get_table_aliases()
        aliases["course"] = course_entity.get_table_alias("course")
        self.add_entity(course_entity.add_joins(enrolment_joins(aliases, "course")))

        guest = self.context.generate_param_name()
        self.add_base_condition_sql(
            f"{user_alias}.id <> :{guest} AND {user_alias}.deleted = 0",
            {guest: self.context.site_guest_id},
        )

        self.add_columns_from_entity(user_entity.name)
        self.add_columns_from_entity(enrolment_entity.name)
        self.add_columns_from_entity(course_entity.name)

        self.add_filters_from_entity(user_entity.name)
        self.add_filters_from_entity(enrolment_entity.name)
        self.add_filters_from_entity(course_entity.name)

        self.add_conditions_from_entity(user_entity.name)

        self.add_action_button(
            form_action="/local/ace/bulkaction.php",
            button_value=LangString("bulkactionbuttonvalue", "reportlayer", "Email selected users"),
            button_id="emailallselected",
        )
        self.set_downloadable(True)

    def get_default_columns(self) -> list[str]:
        return ["user:fullname", "user:username", "user:email", "user:lastaccessedtocourse"]

    def get_default_filters(self) -> list[str]:
        return ["user:fullname", "user:username", "user:email"]

    def get_default_conditions(self) -> list[str]:
        return ["user:fullname", "user:username", "user:email"]
