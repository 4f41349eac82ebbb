"""Test datasource composition."""

import pytest

from reportlayer.core.column import Column
from reportlayer.core.context import ReportContext
from reportlayer.core.datasource import Datasource
from reportlayer.core.entity import EntityDefinition, ReportEntity
from reportlayer.core.filter import Filter, FilterValue
from reportlayer.core.join import JoinFragment
from reportlayer.core.lang import LangString
from reportlayer.validation import ConfigurationError


def _enrol_join(entity: ReportEntity) -> JoinFragment:
    u = entity.get_table_alias("user")
    e = entity.get_table_alias("enrol")
    return JoinFragment(table="enrol", alias=e, predicate=f"{e}.userid = {u}.id")


def _people_columns(entity):
    u = entity.get_table_alias("user")
    e = entity.get_table_alias("enrol")
    return [
        Column(name="email", label=LangString("email"), entity_name=entity.name).add_field(f"{u}.email"),
        Column(name="method", label=LangString("enrol"), entity_name=entity.name)
        .add_join(_enrol_join(entity))
        .add_field(f"{e}.enrol")
        .set_is_sortable(True),
    ]


def _people_filters(entity):
    u = entity.get_table_alias("user")
    return [Filter(kind="text", name="email", label=LangString("email"), entity_name=entity.name, sql=f"{u}.email")]


def _enrolment_columns(entity):
    e = entity.get_table_alias("enrol")
    # Same join as the people entity, written with different spacing
    join = JoinFragment(table="enrol", alias=e, predicate=f"{e}.userid  =  {entity.get_table_alias('user')}.id")
    return [
        Column(name="courseid", label=LangString("course"), entity_name=entity.name).add_join(join).add_field(f"{e}.courseid")
    ]


PEOPLE = EntityDefinition(
    name="people",
    title=LangString("people"),
    table_aliases={"user": "u", "enrol": "e"},
    columns=_people_columns,
    filters=_people_filters,
)

ENROLMENTS = EntityDefinition(
    name="enrolments",
    title=LangString("enrolments"),
    table_aliases={"enrol": "e", "user": "u"},
    columns=_enrolment_columns,
    filters=lambda entity: [],
)

CLASHING = EntityDefinition(
    name="clashing",
    title=LangString("clashing"),
    table_aliases={"course": "e"},
    columns=lambda entity: [],
    filters=lambda entity: [],
)


class PairDatasource(Datasource):
    """Datasource attaching entities in a configurable order."""

    definitions = (PEOPLE, ENROLMENTS)
    default_columns = ["people:email"]

    @classmethod
    def get_name(cls) -> LangString:
        return LangString("pair", "reportlayer", "Pair")

    def initialise(self) -> None:
        self.set_main_table("user", "u")
        for definition in self.definitions:
            entity = ReportEntity(definition, self.context)
            self.add_entity(entity)
            self.add_columns_from_entity(entity.name)
            self.add_filters_from_entity(entity.name)
            self.add_conditions_from_entity(entity.name)

        guest = self.context.generate_param_name()
        self.add_base_condition_sql(f"u.id <> :{guest}", {guest: self.context.site_guest_id})

    def get_default_columns(self) -> list[str]:
        return self.default_columns

    def get_default_filters(self) -> list[str]:
        return ["people:email"]

    def get_default_conditions(self) -> list[str]:
        return []


@pytest.mark.parametrize("definitions", [(PEOPLE, ENROLMENTS), (ENROLMENTS, PEOPLE)])
def test_shared_join_is_emitted_once(definitions):
    datasource = PairDatasource()
    datasource.definitions = definitions

    query = datasource.compose(columns=["people:method", "enrolments:courseid"])

    assert query.sql.count("JOIN enrol e") == 1
    assert [join.alias for join in query.joins] == ["e"]


def test_compose_builds_select_from_where():
    query = PairDatasource(ReportContext(table_prefix="mdl_")).compose()

    assert query.sql == "SELECT u.email AS c0_email\nFROM mdl_user u\nWHERE (u.id <> :rbparam0)"
    assert query.params == {"rbparam0": 1}
    assert [selected.identity for selected in query.columns] == ["people:email"]


def test_unused_joins_are_left_out():
    query = PairDatasource().compose(columns=["people:email"])

    assert "JOIN" not in query.sql


def test_alias_clash_between_entities_raises():
    datasource = PairDatasource()
    datasource.definitions = (PEOPLE, CLASHING)

    with pytest.raises(ConfigurationError, match="Alias 'e'"):
        datasource.build()


def test_alias_clash_with_main_table_raises():
    datasource = PairDatasource()
    datasource.definitions = (
        EntityDefinition(
            name="courses",
            title=LangString("courses"),
            table_aliases={"course": "u"},
            columns=lambda entity: [],
            filters=lambda entity: [],
        ),
    )

    with pytest.raises(ConfigurationError, match="Alias 'u'"):
        datasource.build()


def test_duplicate_entity_name_raises():
    datasource = PairDatasource()
    datasource.definitions = (PEOPLE, PEOPLE)

    with pytest.raises(ConfigurationError, match="already attached"):
        datasource.build()


def test_unknown_default_identity_fails_build():
    datasource = PairDatasource()
    datasource.default_columns = ["people:email", "people:missing"]

    with pytest.raises(ConfigurationError, match="people:missing"):
        datasource.build()


def test_unknown_column_in_selection_raises():
    with pytest.raises(ConfigurationError, match="Unknown column"):
        PairDatasource().compose(columns=["people:nothing"])


def test_filters_get_fresh_parameter_names():
    datasource = PairDatasource()
    first = datasource.compose(filters={"people:email": FilterValue(operator="contains", value="ann")})
    second = datasource.compose(filters={"people:email": FilterValue(operator="contains", value="bob")})

    first_filter = set(first.params) - {"rbparam0"}
    second_filter = set(second.params) - {"rbparam0"}
    assert first_filter and second_filter
    assert first_filter.isdisjoint(second_filter)


def test_any_filter_adds_no_predicate():
    query = PairDatasource().compose(filters={"people:email": FilterValue(operator="any")})

    assert query.sql.count("\n  AND ") == 0


def test_condition_and_filter_are_combined():
    query = PairDatasource().compose(
        filters={"people:email": FilterValue(operator="is_not_empty")},
        conditions={"people:email": FilterValue(operator="ends_with", value="example.com")},
    )

    where = query.sql.split("WHERE ", 1)[1]
    assert where.count("\n  AND ") == 2
    assert "COALESCE(CAST(u.email AS VARCHAR), '') <> ''" in where


def test_sort_on_unsortable_column_raises():
    with pytest.raises(ConfigurationError, match="not sortable"):
        PairDatasource().compose(sort=[("people:email", "asc")])


def test_sort_adds_order_by_and_joins():
    query = PairDatasource().compose(columns=["people:email"], sort=[("people:method", "desc")])

    assert query.sql.endswith("ORDER BY e.enrol DESC")
    assert "INNER JOIN enrol e ON e.userid = u.id" in query.sql


def test_invalid_sort_direction_raises():
    with pytest.raises(ConfigurationError, match="Invalid sort direction"):
        PairDatasource().compose(sort=[("people:method", "sideways")])


def test_base_condition_parameter_clash_raises():
    datasource = PairDatasource().build()

    with pytest.raises(ConfigurationError, match="already bound"):
        datasource.add_base_condition_sql("u.deleted = :rbparam0", {"rbparam0": 0})


def test_build_requires_main_table():
    class NoTable(PairDatasource):
        def initialise(self) -> None:
            pass

    with pytest.raises(ConfigurationError, match="main table"):
        NoTable().build()


def test_action_buttons_and_downloadable():
    datasource = PairDatasource()
    datasource.add_action_button("/bulk.php", LangString("email"), "emailall")
    datasource.set_downloadable(True)

    assert datasource.is_downloadable
    assert datasource.get_action_buttons()[0].button_id == "emailall"


def test_format_row_accepts_sequences_and_mappings():
    query = PairDatasource().compose(columns=["people:email", "people:method"])

    assert query.field_aliases == ["c0_email", "c1_method"]
    assert query.format_row(("ann@example.com", "manual")) == {
        "people:email": "ann@example.com",
        "people:method": "manual",
    }
    assert query.format_row({"c0_email": "bob@example.com", "c1_method": None}) == {
        "people:email": "bob@example.com",
        "people:method": "",
    }
