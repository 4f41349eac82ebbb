"""Test join fragments and join deduplication."""

import pytest

from reportlayer.core.join import JoinFragment, JoinRegistry, normalize_predicate
from reportlayer.validation import ConfigurationError, UnsafeIdentifierError


def test_normalize_predicate_ignores_whitespace():
    assert normalize_predicate("e.userid = u.id") == normalize_predicate("e.userid   =\n    u.id")


def test_join_fragment_renders_prefixed_table():
    join = JoinFragment(table="enrol", alias="e", predicate="e.userid = u.id")

    assert join.to_sql("mdl_") == "INNER JOIN mdl_enrol e ON e.userid = u.id"


def test_left_join_and_subquery_render():
    left = JoinFragment(kind="left", table="role", alias="r", predicate="r.id = e.roleid")
    derived = JoinFragment(subquery="SELECT id FROM mdl_assign", alias="mmj", predicate="mmj.id = cm.instance")

    assert left.to_sql() == "LEFT JOIN role r ON r.id = e.roleid"
    assert derived.to_sql() == "INNER JOIN (SELECT id FROM mdl_assign) mmj ON mmj.id = cm.instance"


def test_join_fragment_requires_exactly_one_source():
    with pytest.raises(ConfigurationError):
        JoinFragment(alias="x", predicate="x.id = u.id")

    with pytest.raises(ConfigurationError):
        JoinFragment(table="enrol", subquery="SELECT 1", alias="x", predicate="x.id = u.id")


def test_join_fragment_rejects_unsafe_alias():
    with pytest.raises(UnsafeIdentifierError):
        JoinFragment(table="enrol", alias="e; DROP TABLE x", predicate="e.id = u.id")


def test_duplicate_registration_is_silent():
    registry = JoinRegistry()
    first = JoinFragment(table="enrol", alias="e", predicate="e.userid = u.id")
    second = JoinFragment(table="enrol", alias="e", predicate="e.userid  =  u.id")

    assert registry.register(first) is True
    assert registry.register(second) is False
    assert registry.register(first) is False
    assert len(registry) == 1
    assert registry.to_sql().count("JOIN enrol e") == 1


def test_first_registration_order_is_kept():
    registry = JoinRegistry()
    ue = JoinFragment(table="user_enrolments", alias="ue", predicate="ue.userid = u.id")
    e = JoinFragment(table="enrol", alias="e", predicate="e.id = ue.enrolid")
    c = JoinFragment(table="course", alias="c", predicate="c.id = e.courseid")

    registry.register_all([ue, e])
    registry.register_all([ue, e, c])
    registry.register(ue)

    assert [join.alias for join in registry.fragments()] == ["ue", "e", "c"]


def test_same_alias_for_different_tables_raises():
    registry = JoinRegistry()
    registry.register(JoinFragment(table="enrol", alias="e", predicate="e.userid = u.id"))

    with pytest.raises(ConfigurationError, match="Alias 'e'"):
        registry.register(JoinFragment(table="user_enrolments", alias="e", predicate="e.userid = u.id"))


def test_same_alias_with_different_predicate_raises():
    registry = JoinRegistry()
    registry.register(JoinFragment(table="enrol", alias="e", predicate="e.userid = u.id"))

    with pytest.raises(ConfigurationError, match="conflicting predicates"):
        registry.register(JoinFragment(table="enrol", alias="e", predicate="e.id = ue.enrolid"))


def test_reserved_main_alias_cannot_be_joined():
    registry = JoinRegistry()
    registry.reserve_alias("u", "user")

    with pytest.raises(ConfigurationError):
        registry.register(JoinFragment(table="enrol", alias="u", predicate="u.id = u.id"))


def test_params_are_merged():
    registry = JoinRegistry()
    registry.register(
        JoinFragment(table="user_lastaccess", alias="ul", predicate="ul.courseid = :c1", params={"c1": 2})
    )
    registry.register(JoinFragment(table="enrol", alias="e", predicate="e.userid = u.id", params={"p2": 3}))

    assert registry.params() == {"c1": 2, "p2": 3}


@pytest.mark.parametrize("kinds", [("inner", "left"), ("left", "inner")])
def test_same_join_with_different_kind_raises(kinds):
    registry = JoinRegistry()
    first, second = (JoinFragment(kind=kind, table="role", alias="r", predicate="r.id = e.roleid") for kind in kinds)
    registry.register(first)

    with pytest.raises(ConfigurationError, match="joined both as"):
        registry.register(second)

    assert [join.kind for join in registry.fragments()] == [kinds[0]]
