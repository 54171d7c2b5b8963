"""Flow export/import and the execution request projection.

The exported document keeps each node's resolved generic bindings in the
``{"mainType", "genericTypes"}`` form.  Imported bindings are installed as-is;
nothing checks that they came from a real resolution.  Any malformed part of
an imported document surfaces as :class:`FlowFormatError` so callers can
report it instead of crashing.
"""

from __future__ import annotations

import json
from dataclasses import replace
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence

from packages.generics.errors import GenericTypeError
from packages.generics.type_tree import tree_from_mapping
from packages.telemetry.logger import get_logger

from .colors import RGB
from .connections import edge_style
from .handles import HandleKind, inspect_handle
from .model import TRIGGER_HANDLE, Edge, ExecutionType, NodeInstance, NodeMetaMap, Position

__all__ = [
    "FlowFormatError",
    "dump_flow",
    "from_export_format",
    "load_flow",
    "load_flow_file",
    "to_execute_request",
    "to_export_format",
]

_LOGGER = get_logger("flowtypes.graph.flow_format")


class FlowFormatError(ValueError):
    """Raised when an imported flow document cannot be used."""


# ---------------------------------------------------------------------------
# Export


def to_export_format(nodes: Iterable[NodeInstance], edges: Iterable[Edge]) -> dict[str, Any]:
    data_edges: list[dict[str, str]] = []
    route_edges: list[dict[str, str]] = []
    for edge in edges:
        if edge.is_route:
            route_edges.append(
                {
                    "source_id": edge.source,
                    "source_pin": edge.source_handle or TRIGGER_HANDLE,
                    "target_id": edge.target,
                }
            )
        else:
            data_edges.append(
                {
                    "source_id": edge.source,
                    "source_pin": edge.source_handle or TRIGGER_HANDLE,
                    "target_id": edge.target,
                    "target_pin": edge.target_handle or TRIGGER_HANDLE,
                }
            )

    exported_nodes = []
    for node in nodes:
        payload: dict[str, Any] = {
            "id": node.id,
            "node_type": node.node_type,
            "execution_type": node.execution_type.value,
            "inputs": dict(node.inputs),
            "position": {"x": node.position.x, "y": node.position.y},
            "generic_types": {
                name: tree.to_mapping() for name, tree in node.generic_types.items()
            },
        }
        if node.width is not None:
            payload["width"] = node.width
        if node.height is not None:
            payload["height"] = node.height
        exported_nodes.append(payload)

    return {"nodes": exported_nodes, "edges": data_edges, "route_edges": route_edges}


def dump_flow(nodes: Iterable[NodeInstance], edges: Iterable[Edge]) -> str:
    return json.dumps(to_export_format(nodes, edges))


# ---------------------------------------------------------------------------
# Import


def from_export_format(
    document: Mapping[str, Any],
    metas: NodeMetaMap,
    *,
    palette: Mapping[str, RGB] | None = None,
) -> tuple[list[NodeInstance], list[Edge]]:
    """Rebuild nodes and edges from an exported document.

    Data edges get their stroke from the source handle's effective type; route
    edges are animated and always target the trigger handle.
    """

    if not isinstance(document, Mapping):
        raise FlowFormatError("flow document must be a JSON object")
    try:
        nodes = [_node_from_mapping(raw) for raw in _list(document, "nodes")]
        lookup = {node.id: node for node in nodes}
        edges: list[Edge] = []
        for index, raw in enumerate(_list(document, "edges")):
            edges.append(_data_edge(index, raw, lookup, metas, palette))
        for index, raw in enumerate(_list(document, "route_edges")):
            edges.append(
                Edge(
                    id=f"route-{index}",
                    source=str(raw["source_id"]),
                    source_handle=str(raw["source_pin"]),
                    target=str(raw["target_id"]),
                    target_handle=TRIGGER_HANDLE,
                    animated=True,
                )
            )
    except FlowFormatError:
        raise
    except (AttributeError, KeyError, TypeError, ValueError, GenericTypeError) as exc:
        raise FlowFormatError(f"invalid flow document: {exc}") from exc
    return nodes, edges


def load_flow(
    text: str,
    metas: NodeMetaMap,
    *,
    palette: Mapping[str, RGB] | None = None,
) -> tuple[list[NodeInstance], list[Edge]]:
    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        raise FlowFormatError(f"flow is not valid JSON: {exc}") from exc
    return from_export_format(document, metas, palette=palette)


def load_flow_file(
    path: str | Path,
    metas: NodeMetaMap,
    *,
    palette: Mapping[str, RGB] | None = None,
) -> tuple[list[NodeInstance], list[Edge]]:
    flow_path = Path(path)
    if flow_path.suffix.lower() != ".json":
        raise FlowFormatError("only .json flow files can be imported")
    nodes, edges = load_flow(flow_path.read_text(encoding="utf-8"), metas, palette=palette)
    _LOGGER.info("imported %s | nodes=%d edges=%d", flow_path.name, len(nodes), len(edges))
    return nodes, edges


def _list(document: Mapping[str, Any], key: str) -> Sequence[Mapping[str, Any]]:
    value = document.get(key, [])
    if not isinstance(value, list):
        raise FlowFormatError(f"'{key}' must be a list")
    return value


def _node_from_mapping(raw: Mapping[str, Any]) -> NodeInstance:
    position = raw.get("position") or {}
    bindings_raw = raw.get("generic_types") or {}
    if not isinstance(bindings_raw, Mapping):
        raise FlowFormatError(f"generic_types of node {raw.get('id')!r} must be an object")
    return NodeInstance(
        id=str(raw["id"]),
        node_type=str(raw["node_type"]),
        execution_type=ExecutionType(raw.get("execution_type", ExecutionType.TRIGGERED.value)),
        inputs=dict(raw.get("inputs") or {}),
        generic_types={str(name): tree_from_mapping(tree) for name, tree in bindings_raw.items()},
        position=Position(float(position.get("x", 0.0)), float(position.get("y", 0.0))),
        width=raw.get("width"),
        height=raw.get("height"),
    )


def _data_edge(
    index: int,
    raw: Mapping[str, Any],
    nodes: Mapping[str, NodeInstance],
    metas: NodeMetaMap,
    palette: Mapping[str, RGB] | None,
) -> Edge:
    source = str(raw["source_id"])
    source_pin = str(raw["source_pin"])
    info = inspect_handle(nodes, metas, source, source_pin, is_source=True)
    style = None
    if info is not None and info.kind is HandleKind.DATA:
        # Import colors by the resolved type even if the node is still partly generic.
        style = edge_style(replace(info, unresolved=frozenset()), palette=palette)
    return Edge(
        id=f"data-{index}",
        source=source,
        source_handle=source_pin,
        target=str(raw["target_id"]),
        target_handle=str(raw["target_pin"]),
        animated=False,
        style=style,
    )


# ---------------------------------------------------------------------------
# Execution request


def to_execute_request(nodes: Iterable[NodeInstance], edges: Iterable[Edge]) -> dict[str, Any]:
    """Project the graph into the backend's execute-graph request body.

    Animated edges are execution routes; the rest carry data.
    """

    data_edges: list[dict[str, str]] = []
    route_edges: list[dict[str, str]] = []
    for edge in edges:
        if edge.animated:
            route_edges.append(
                {
                    "source_id": edge.source,
                    "source_pin": edge.source_handle or TRIGGER_HANDLE,
                    "target_id": edge.target,
                }
            )
        else:
            data_edges.append(
                {
                    "source_id": edge.source,
                    "source_pin": edge.source_handle or TRIGGER_HANDLE,
                    "target_id": edge.target,
                    "target_pin": edge.target_handle or TRIGGER_HANDLE,
                }
            )
    return {
        "nodes": [
            {
                "id": node.id,
                "node_type": node.node_type,
                "execution_type": node.execution_type.value,
                "inputs": dict(node.inputs),
            }
            for node in nodes
        ],
        "edges": data_edges,
        "route_edges": route_edges,
    }
