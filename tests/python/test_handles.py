"""Tests for handle inspection and handle listing."""

from __future__ import annotations

import pytest

from packages.generics.errors import TypeSyntaxError
from packages.generics.grammar import parse_type
from packages.graph.colors import UNRESOLVED_COLOR, type_to_color
from packages.graph.handles import HandleKind, inspect_handle, list_handles
from packages.graph.model import ExecutionType, NodeInstance, NodeMeta, NodePort


def _nodes(*nodes: NodeInstance) -> dict[str, NodeInstance]:
    return {node.id: node for node in nodes}


def test_unbound_generic_port_reports_parameters(metas) -> None:
    nodes = _nodes(NodeInstance("1", "ListFirst", ExecutionType.DATA))

    info = inspect_handle(nodes, metas, "1", "list", is_source=False)

    assert info is not None
    assert info.kind is HandleKind.DATA
    assert info.type == parse_type("list<T>")
    assert info.unresolved == frozenset({"T"})
    assert info.has_unresolved


def test_bound_port_uses_effective_type(metas) -> None:
    node = NodeInstance("1", "ListFirst", generic_types={"T": parse_type("pair<int, str>")})

    info = inspect_handle(_nodes(node), metas, "1", "first", is_source=True)

    assert info is not None
    assert info.type == parse_type("pair<int, str>")
    assert info.unresolved == frozenset()


def test_unresolved_set_is_per_node_not_per_port(metas) -> None:
    node = NodeInstance("1", "MapGet", generic_types={"K": parse_type("str")})

    info = inspect_handle(_nodes(node), metas, "1", "key", is_source=False)

    assert info is not None
    assert info.type == parse_type("str")
    assert info.unresolved == frozenset({"V"})


def test_trigger_and_route_handles_are_control(metas) -> None:
    nodes = _nodes(NodeInstance("1", "Branch"), NodeInstance("2", "PrintInt"))

    trigger = inspect_handle(nodes, metas, "2", "_", is_source=False)
    route = inspect_handle(nodes, metas, "1", "then", is_source=True)

    for info in (trigger, route):
        assert info is not None
        assert info.kind is HandleKind.CONTROL
        assert info.type is None
        assert info.unresolved == frozenset()


@pytest.mark.parametrize(
    "node_id, handle, is_source",
    [
        ("1", None, True),
        ("1", "", True),
        ("missing", "value", True),
        ("1", "nope", True),
        # "value" exists as an output but is looked up on the input side here.
        ("2", "value", False),
    ],
)
def test_missing_handles_return_none(metas, node_id, handle, is_source) -> None:
    nodes = _nodes(NodeInstance("1", "IntConst"), NodeInstance("2", "IntList"))

    assert inspect_handle(nodes, metas, node_id, handle, is_source=is_source) is None


def test_unknown_node_type_returns_none(metas) -> None:
    nodes = _nodes(NodeInstance("1", "NotRegistered"))

    assert inspect_handle(nodes, metas, "1", "value", is_source=True) is None


def test_malformed_metadata_type_propagates() -> None:
    metas = {"Broken": NodeMeta(title="Broken", category="x", outputs=(NodePort("out", "list<"),))}
    nodes = _nodes(NodeInstance("1", "Broken"))

    with pytest.raises(TypeSyntaxError):
        inspect_handle(nodes, metas, "1", "out", is_source=True)


def test_list_handles_puts_trigger_first(metas) -> None:
    node = NodeInstance("1", "PrintInt", ExecutionType.TRIGGERED)

    views = list(list_handles(node, metas["PrintInt"], outputs=False))

    assert [view.id for view in views] == ["_", "value"]
    assert views[0].kind is HandleKind.CONTROL
    assert views[1].color == type_to_color("int")


def test_list_handles_hides_input_trigger_for_no_trigger_types(metas) -> None:
    node = NodeInstance("start", "StartNode", ExecutionType.TRIGGERED)

    inputs = list(list_handles(node, metas["StartNode"], outputs=False))
    outputs = list(list_handles(node, metas["StartNode"], outputs=True))

    assert inputs == []
    assert [view.id for view in outputs] == ["_"]


def test_list_handles_skips_trigger_for_data_nodes(metas) -> None:
    node = NodeInstance("1", "IntConst", ExecutionType.DATA)

    views = list(list_handles(node, metas["IntConst"], outputs=True))

    assert [view.id for view in views] == ["value"]


def test_route_outputs_are_listed_as_control(metas) -> None:
    node = NodeInstance("1", "Branch")

    views = list(list_handles(node, metas["Branch"], outputs=True))

    assert [(view.id, view.kind) for view in views] == [
        ("_", HandleKind.CONTROL),
        ("then", HandleKind.CONTROL),
        ("else", HandleKind.CONTROL),
    ]


def test_data_views_flag_unresolved_per_port(metas) -> None:
    node = NodeInstance("1", "MapGet", ExecutionType.DATA, generic_types={"K": parse_type("str")})

    views = {view.id: view for view in list_handles(node, metas["MapGet"], outputs=False)}

    assert views["map"].unresolved
    assert views["map"].color == UNRESOLVED_COLOR
    assert views["map"].type_str == "map<str, V>"
    assert not views["key"].unresolved
    assert views["key"].color == type_to_color("str")


def test_data_view_colors_follow_palette(metas) -> None:
    node = NodeInstance("1", "IntConst", ExecutionType.DATA)
    palette = {"int": (1, 2, 3)}

    views = list(list_handles(node, metas["IntConst"], outputs=True, palette=palette))

    assert views[0].color == (1, 2, 3)
