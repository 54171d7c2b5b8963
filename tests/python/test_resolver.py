"""Tests for one-directional generic parameter resolution."""

from __future__ import annotations

import pytest

from packages.generics.errors import ResolutionError
from packages.generics.grammar import parse_type
from packages.generics.resolver import resolve_generic_types, try_resolve
from packages.generics.type_tree import TypeTree


def test_leaf_parameter_binds_concrete_type() -> None:
    result = resolve_generic_types(TypeTree("T"), TypeTree("int"), {"T"})

    assert result == {"T": TypeTree("int")}


def test_nested_parameter_binds_inner_type() -> None:
    result = resolve_generic_types(parse_type("list<T>"), parse_type("list<int>"), {"T"})

    assert result == {"T": TypeTree("int")}


@pytest.mark.parametrize("concrete", ["int", "list<pair<int, str>>", "*", "map<str, list<*>>"])
def test_leaf_parameter_takes_whole_subtree(concrete: str) -> None:
    tree = parse_type(concrete)

    assert resolve_generic_types(TypeTree("T"), tree, {"T", "U"}) == {"T": tree}


def test_parameters_collected_in_one_flat_table() -> None:
    result = resolve_generic_types(
        parse_type("map<K, list<pair<V, K>>>"),
        parse_type("map<str, list<pair<int, str>>>"),
        {"K", "V"},
    )

    assert result == {"K": TypeTree("str"), "V": TypeTree("int")}


def test_parameterised_occurrence_binds_main_type_only() -> None:
    result = resolve_generic_types(parse_type("C<T>"), parse_type("set<list<int>>"), {"C", "T"})

    assert result == {"C": TypeTree("set"), "T": parse_type("list<int>")}


def test_parameterised_occurrence_requires_same_arity() -> None:
    with pytest.raises(ResolutionError) as excinfo:
        resolve_generic_types(parse_type("C<T>"), parse_type("pair<int, str>"), {"C", "T"})

    assert excinfo.value.kind == "arity"


def test_conflicting_bindings_are_reported() -> None:
    with pytest.raises(ResolutionError) as excinfo:
        resolve_generic_types(parse_type("pair<T, T>"), parse_type("pair<int, str>"), {"T"})

    error = excinfo.value
    assert error.kind == "conflict"
    assert error.parameter == "T"
    assert error.expected == TypeTree("int")
    assert error.actual == TypeTree("str")
    assert "T" in str(error) and "int" in str(error) and "str" in str(error)


def test_repeated_parameter_with_equal_bindings_is_fine() -> None:
    result = resolve_generic_types(
        parse_type("pair<T, T>"), parse_type("pair<list<int>, list<int>>"), {"T"}
    )

    assert result == {"T": parse_type("list<int>")}


def test_main_type_mismatch() -> None:
    with pytest.raises(ResolutionError) as excinfo:
        resolve_generic_types(parse_type("list<T>"), parse_type("pair<int>"), {"T"})

    assert excinfo.value.kind == "main_type"


def test_arity_mismatch() -> None:
    with pytest.raises(ResolutionError) as excinfo:
        resolve_generic_types(parse_type("list<T>"), parse_type("list<int, str>"), {"T"})

    assert excinfo.value.kind == "arity"


def test_concrete_side_is_never_bound() -> None:
    # Only the first argument drives the structure; U on the right is just a name.
    with pytest.raises(ResolutionError):
        resolve_generic_types(parse_type("list<int>"), parse_type("list<U>"), {"U"})


def test_try_resolve_returns_tagged_result() -> None:
    ok = try_resolve(parse_type("list<T>"), parse_type("list<int>"), {"T"})
    failed = try_resolve(parse_type("list<T>"), parse_type("set<int>"), {"T"})

    assert ok.ok and ok.bindings == {"T": TypeTree("int")}
    assert not failed.ok
    assert isinstance(failed.error, ResolutionError)
    assert failed.bindings == {}
