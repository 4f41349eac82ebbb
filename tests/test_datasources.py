"""Run the bundled datasources against a small site database."""

import pytest

from reportlayer.core.context import ReportContext
from reportlayer.core.filter import FilterValue
from reportlayer.datasources import DATASOURCES, get_datasource
from reportlayer.datasources.activities import ActivitiesDatasource
from reportlayer.datasources.engagement import EngagementDatasource
from reportlayer.datasources.users import UsersDatasource

ANN_LASTACCESS = "Tuesday, 14 November 2023, 10:13 PM"


def _run(adapter, query):
    return query.format_rows(adapter.fetchall(adapter.execute(query.sql, query.params)))


@pytest.mark.parametrize("name", sorted(DATASOURCES))
def test_every_datasource_builds(name, context):
    datasource = get_datasource(name, context).build()

    for identity in datasource.get_default_columns():
        assert identity in datasource.get_columns()
    for identity in datasource.get_default_filters():
        assert identity in datasource.get_filters()
    for identity in datasource.get_default_conditions():
        assert identity in datasource.get_conditions()


def test_unknown_datasource():
    with pytest.raises(KeyError):
        get_datasource("grades")


def test_users_defaults_exclude_guest_and_deleted(site_db, context):
    query = UsersDatasource(context).compose(sort=[("user:username", "asc")])

    assert _run(site_db, query) == [
        {
            "user:fullname": "Ann Smith",
            "user:username": "ann",
            "user:email": "ann@example.com",
            "user:lastaccessedtocourse": ANN_LASTACCESS,
        },
        {
            "user:fullname": "Bob Jones",
            "user:username": "bob",
            "user:email": "bob@example.com",
            "user:lastaccessedtocourse": "",
        },
    ]


def test_users_enrolment_and_course_columns_share_joins(site_db, context):
    query = UsersDatasource(context).compose(
        columns=["user:username", "enrolment:role", "enrolment:enrol", "course:fullname"],
        sort=[("user:username", "asc")],
    )

    assert query.sql.count("JOIN mdl_user_enrolments ue") == 1
    assert query.sql.count("JOIN mdl_enrol e") == 1
    assert _run(site_db, query) == [
        {
            "user:username": "ann",
            "enrolment:role": "editingteacher",
            "enrolment:enrol": "self",
            "course:fullname": "Statistics 101",
        },
        {
            "user:username": "bob",
            "enrolment:role": "student",
            "enrolment:enrol": "manual",
            "course:fullname": "Statistics 101",
        },
    ]


def test_users_filter(site_db, context):
    query = UsersDatasource(context).compose(
        columns=["user:username"],
        filters={"user:fullname": FilterValue(operator="contains", value="SMI")},
    )

    assert _run(site_db, query) == [{"user:username": "ann"}]


def test_users_date_filter(site_db, context):
    query = UsersDatasource(context).compose(
        columns=["user:username"],
        filters={"user:lastaccess": FilterValue(operator="range", value=1690000000)},
    )

    assert _run(site_db, query) == [{"user:username": "ann"}]


def test_users_action_button(context):
    datasource = UsersDatasource(context).build()

    [button] = datasource.get_action_buttons()
    assert button.form_action == "/local/ace/bulkaction.php"
    assert button.button_id == "emailallselected"
    assert datasource.is_downloadable


def test_activities_for_course(site_db, context):
    query = ActivitiesDatasource(context).compose(sort=[("course_modules:name", "asc")])

    assert "mdl_quiz" not in query.sql
    assert _run(site_db, query) == [
        {
            "course_modules:type": (
                '<img class="icon" alt="forum" title="forum" '
                'src="/theme/image.php?image=icon&amp;component=mod_forum" />'
            ),
            "course_modules:name": "Announcements",
            "course_modules:duedate": "",
        },
        {
            "course_modules:type": (
                '<img class="icon" alt="assign" title="assign" '
                'src="/theme/image.php?image=icon&amp;component=mod_assign" />'
            ),
            "course_modules:name": "Essay one",
            "course_modules:duedate": ANN_LASTACCESS,
        },
    ]


def test_activities_without_installed_modules(site_db):
    context = ReportContext(course_id=2, table_prefix="mdl_")
    query = ActivitiesDatasource(context).compose(columns=["course_modules:name"])

    assert "WHERE 1 = 0" in query.sql
    assert _run(site_db, query) == []


def test_activities_icon_uses_wwwroot(site_db, catalog):
    context = ReportContext(course_id=2, table_prefix="mdl_", catalog=catalog, wwwroot="https://lms.example.com/")
    query = ActivitiesDatasource(context).compose(
        columns=["course_modules:type"],
        filters={"course_modules:type": FilterValue(operator="is_equal_to", value="assign")},
    )

    [row] = _run(site_db, query)
    assert 'src="https://lms.example.com/theme/image.php?image=icon&amp;component=mod_assign"' in row[
        "course_modules:type"
    ]


def test_engagement_percent(site_db, context):
    query = EngagementDatasource(context).compose(
        columns=["user:fullname", "samples:studentengagement"],
        sort=[("user:fullname", "asc")],
    )

    assert _run(site_db, query) == [
        {"user:fullname": "Ann Smith", "samples:studentengagement": "0%"},
        {"user:fullname": "Bob Jones", "samples:studentengagement": "42%"},
    ]


def test_engagement_samples_are_not_conditions(context):
    datasource = EngagementDatasource(context).build()

    assert "user:fullname" in datasource.get_conditions()
    assert not [identity for identity in datasource.get_conditions() if identity.startswith("samples:")]
    assert "samples:studentengagement" in datasource.get_filters()


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (FilterValue(operator="contains", value="4"), ["Bob Jones"]),
        (FilterValue(operator="is_equal_to", value="0"), ["Ann Smith"]),
        (FilterValue(operator="does_not_contain", value="2"), ["Ann Smith"]),
        (FilterValue(operator="is_empty"), []),
        (FilterValue(operator="is_not_empty"), ["Ann Smith", "Bob Jones"]),
    ],
)
def test_engagement_text_filter_on_integer_value(site_db, context, value, expected):
    query = EngagementDatasource(context).compose(
        columns=["user:fullname"],
        filters={"samples:studentengagement": value},
        sort=[("user:fullname", "asc")],
    )

    assert [row["user:fullname"] for row in _run(site_db, query)] == expected


@pytest.mark.parametrize("name", sorted(DATASOURCES))
def test_every_column_formats_null_as_empty(name, context):
    datasource = get_datasource(name, context).build()

    for identity, column in datasource.get_columns().items():
        assert column.format_value([None] * len(column.fields)) == "", identity
