import pytest

from pyproject_inspector.group_resolver import (
    CyclicGroup,
    DuplicateGroupName,
    UnknownGroup,
    resolve_all,
    resolve_dependency_groups,
    resolve_optional_dependencies,
)
from pyproject_inspector.types import GroupInclude, RequirementEntry, normalize_name


def req(value):
    return RequirementEntry(value)


def include(name):
    return GroupInclude(name)


def test_include_group_is_spliced_in_order():
    groups = {
        "test": [req("pytest"), req("mock")],
        "docs": [include("test"), req("sphinx")],
    }

    assert resolve_dependency_groups(groups, ["docs"]) == ["pytest", "mock", "sphinx"]


def test_overlapping_groups_keep_first_occurrence():
    groups = {"g1": [req("pytest")], "g2": [req("pytest"), req("mock")]}

    assert resolve_dependency_groups(groups, ["g1", "g2"]) == ["pytest", "mock"]
    assert resolve_dependency_groups(groups, ["g2", "g1"]) == ["pytest", "mock"]


def test_duplicates_are_compared_verbatim():
    groups = {"g": [req("pytest"), req("pytest>=8"), req("pytest")]}

    assert resolve_dependency_groups(groups, ["g"]) == ["pytest", "pytest>=8"]


def test_self_include_is_a_cycle():
    groups = {"a": [include("a")]}

    with pytest.raises(CyclicGroup) as excinfo:
        resolve_dependency_groups(groups, ["a"])
    assert excinfo.value.path == ["a", "a"]
    assert "a -> a" in str(excinfo.value)


def test_mutual_inclusion_is_a_cycle_from_either_side():
    groups = {"a": [include("b")], "b": [include("a")]}

    with pytest.raises(CyclicGroup) as excinfo:
        resolve_dependency_groups(groups, ["a"])
    assert excinfo.value.chain == "a -> b -> a"

    with pytest.raises(CyclicGroup) as excinfo:
        resolve_dependency_groups(groups, ["b"])
    assert excinfo.value.chain == "b -> a -> b"


def test_shared_subgroup_is_not_a_cycle():
    groups = {
        "base": [req("attrs")],
        "lint": [include("base"), req("ruff")],
        "test": [include("base"), req("pytest")],
        "dev": [include("lint"), include("test")],
    }

    assert resolve_dependency_groups(groups, ["dev"]) == ["attrs", "ruff", "pytest"]


def test_unknown_groups():
    groups = {"iota": [include("alpha")]}

    with pytest.raises(UnknownGroup) as excinfo:
        resolve_dependency_groups(groups, ["missing"])
    assert excinfo.value.name == "missing"
    assert excinfo.value.included_by is None

    with pytest.raises(UnknownGroup) as excinfo:
        resolve_dependency_groups(groups, ["iota"])
    assert str(excinfo.value) == "Failed to find dependency group `alpha` included by `iota`"


def test_names_match_after_normalization():
    groups = {
        "Test_Utils": [req("pytest")],
        "docs": [include("test.utils"), req("sphinx")],
    }

    assert resolve_dependency_groups(groups, ["TEST-utils"]) == ["pytest"]
    assert resolve_dependency_groups(groups, ["docs"]) == ["pytest", "sphinx"]


def test_normalization_collisions_are_rejected():
    groups = {"test": [req("pytest")], "TEST": [req("mock")]}

    with pytest.raises(DuplicateGroupName):
        resolve_dependency_groups(groups, ["test"])


def test_normalize_name():
    assert normalize_name("Foo.._-Bar") == "foo-bar"
    assert normalize_name("group_one") == normalize_name("group-one")


def test_resolution_is_repeatable():
    groups = {
        "test": [req("pytest"), req("mock")],
        "docs": [include("test"), req("sphinx"), req("furo")],
    }

    first = resolve_dependency_groups(groups, ["docs", "test"])
    for _ in range(5):
        assert resolve_dependency_groups(groups, ["docs", "test"]) == first


def test_self_referencing_extras_in_groups():
    groups = {"dev": [req("spam[test]"), req("ruff")]}
    optional = {"test": ["pytest"], "numpy": ["numpy"]}

    assert resolve_dependency_groups(groups, ["dev"], project_name="spam", optional_dependencies=optional) == [
        "pytest",
        "ruff",
    ]
    # Without a project name, requirement strings are opaque.
    assert resolve_dependency_groups(groups, ["dev"]) == ["spam[test]", "ruff"]


def test_optional_dependencies_follow_project_references():
    optional = {
        "all": ["foo[group-one]", "foo[group_two]"],
        "group_one": ["anyio>=4.9.0"],
        "group-two": ["trio>=0.31.0"],
    }

    assert resolve_optional_dependencies("foo", optional, ["all"]) == ["anyio>=4.9.0", "trio>=0.31.0"]


def test_optional_dependency_cycle_and_missing_extra():
    with pytest.raises(CyclicGroup) as excinfo:
        resolve_optional_dependencies("spam", {"alpha": ["spam[iota]"], "iota": ["spam[alpha]"]}, ["alpha"])
    assert excinfo.value.chain == "spam[alpha] -> spam[iota] -> spam[alpha]"

    with pytest.raises(UnknownGroup) as excinfo:
        resolve_optional_dependencies("spam", {"iota": ["spam[alpha]"]}, ["iota"])
    assert excinfo.value.kind == "extra"
    assert excinfo.value.included_by == "spam[iota]"


def test_resolve_all_keeps_extras_and_groups_apart():
    resolved = resolve_all(
        {"dev": [req("ruff")], "test": [req("spam[numpy]")]},
        project_name="spam",
        optional_dependencies={"dev": ["pytest"], "numpy": ["numpy"]},
    )

    assert resolved.optional_dependencies == {"dev": ["pytest"], "numpy": ["numpy"]}
    assert resolved.dependency_groups == {"dev": ["ruff"], "test": ["numpy"]}


def test_self_referencing_extras_keep_written_order():
    groups = {"dev": [req("spam[zeta, alpha]"), req("ruff")]}
    optional = {"alpha": ["a"], "zeta": ["z"]}

    assert resolve_dependency_groups(groups, ["dev"], project_name="spam", optional_dependencies=optional) == [
        "z",
        "a",
        "ruff",
    ]
    assert resolve_optional_dependencies("spam", {"all": ["spam[zeta,alpha]>=1"], **optional}, ["all"]) == ["z", "a"]


def test_colliding_extra_names_do_not_block_group_resolution():
    groups = {"dev": [req("ruff")]}
    optional = {"Test": ["pytest"], "test": ["mock"]}

    assert resolve_dependency_groups(groups, ["dev"], optional_dependencies=optional) == ["ruff"]
    assert resolve_dependency_groups(groups, ["dev"], project_name="spam", optional_dependencies=optional) == ["ruff"]

    with pytest.raises(DuplicateGroupName) as excinfo:
        resolve_optional_dependencies("spam", optional, ["test"])
    assert excinfo.value.kind == "extra"
    assert excinfo.value.names == ("Test", "test")
