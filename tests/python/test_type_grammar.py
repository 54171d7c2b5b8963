"""Tests for the generic type expression parser."""

from __future__ import annotations

import pytest

from packages.generics import grammar
from packages.generics.errors import TypeSyntaxError
from packages.generics.type_tree import TypeTree, format_type


def test_parse_simple_type() -> None:
    assert grammar.parse_type("int") == TypeTree("int")
    assert grammar.parse_type("int").generic_types == ()


def test_parse_nested_generics() -> None:
    tree = grammar.parse_type("list<pair<int, str>>")

    assert tree == TypeTree("list", (TypeTree("pair", (TypeTree("int"), TypeTree("str"))),))


def test_parse_deeply_nested_commas_stay_in_their_segment() -> None:
    tree = grammar.parse_type("list<pair<int, list<pair<str, int>>>>")

    inner_pair = tree.generic_types[0]
    assert inner_pair.main_type == "pair"
    assert len(inner_pair.generic_types) == 2
    assert format_type(inner_pair.generic_types[1]) == "list<pair<str, int>>"


def test_parse_trims_whitespace() -> None:
    assert grammar.parse_type("  map < K ,  list<V> >  ") == grammar.parse_type("map<K, list<V>>")


def test_parse_wildcard_leaf() -> None:
    assert grammar.parse_type("list<*>").generic_types[0].main_type == "*"


@pytest.mark.parametrize(
    "text",
    [
        "",
        "   ",
        "list<",
        "list>",
        "list<int<>",
        "list<int>>",
        "list<>",
        "pair<int,>",
        "pair<, int>",
        "list<a><b>",
        "list<int> extra",
        "*<int>",
    ],
)
def test_malformed_expressions_raise(text: str) -> None:
    with pytest.raises(TypeSyntaxError):
        grammar.parse_type(text)


def test_syntax_error_names_offending_text() -> None:
    with pytest.raises(TypeSyntaxError) as excinfo:
        grammar.parse_type("dict<str, int")

    assert "dict<str, int" in str(excinfo.value)
    assert excinfo.value.text == "dict<str, int"


@pytest.mark.parametrize(
    "text",
    ["int", "list<T>", "map<K, list<pair<V, *>>>", "pair<list<int>, list<str>>"],
)
def test_canonical_form_round_trips(text: str) -> None:
    tree = grammar.parse_type(text)

    assert grammar.parse_type(format_type(tree)) == tree
    assert format_type(tree) == text


def test_split_generic_arguments_respects_depth() -> None:
    assert grammar.split_generic_arguments("int, pair<a, b>, c") == ["int", "pair<a, b>", "c"]


def test_excessive_nesting_is_a_syntax_error() -> None:
    text = "a<" * 2000 + "a" + ">" * 2000

    with pytest.raises(TypeSyntaxError) as excinfo:
        grammar.parse_type(text)

    assert "nested too deeply" in str(excinfo.value)
