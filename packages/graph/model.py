"""Graph data model shared by the inspector, validator and editor.

Node metadata (:class:`NodeMeta`) is supplied by the execution backend and is
read-only for the whole session.  Placed nodes (:class:`NodeInstance`) and
edges (:class:`Edge`) are immutable values; the editor swaps in new values
rather than mutating them so snapshots taken for history stay intact.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Sequence

from packages.generics.type_tree import TypeTree
from packages.utils.config import load_config

__all__ = [
    "ROUTE_TYPE",
    "TRIGGER_HANDLE",
    "Edge",
    "ExecutionType",
    "NodeDisplayWidget",
    "NodeInstance",
    "NodeMeta",
    "NodeMetaMap",
    "NodePort",
    "NodePortOptions",
    "Position",
    "load_node_metas",
    "node_metas_from_mapping",
]

# Reserved handle id of the execution trigger on TRIGGERED nodes.
TRIGGER_HANDLE = "_"
# Raw port type marking an execution-route output.
ROUTE_TYPE = "route"


class ExecutionType(str, Enum):
    TRIGGERED = "TRIGGERED"
    DATA = "DATA"
    DATA_ONCE = "DATA_ONCE"


@dataclass(frozen=True, slots=True)
class NodePortOptions:
    default: str | int | float | bool | None = None
    multiline: bool = False
    choices: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class NodePort:
    """Declared input or output of a node type."""

    name: str
    type: str
    widget: str | None = None
    options: NodePortOptions | None = None

    @property
    def is_route(self) -> bool:
        return self.type == ROUTE_TYPE


@dataclass(frozen=True, slots=True)
class NodeDisplayWidget:
    name: str
    type: str


@dataclass(frozen=True, slots=True)
class NodeMeta:
    """Per node-type declaration published by the backend."""

    title: str
    category: str
    inputs: tuple[NodePort, ...] = ()
    outputs: tuple[NodePort, ...] = ()
    generic_types: tuple[str, ...] = ()
    execution: ExecutionType | None = None
    no_trigger: bool = False
    display: tuple[NodeDisplayWidget, ...] = ()

    def find_port(self, name: str, *, output: bool) -> NodePort | None:
        ports = self.outputs if output else self.inputs
        for port in ports:
            if port.name == name:
                return port
        return None

    def default_inputs(self) -> dict[str, Any]:
        """Initial runtime values for a freshly placed node."""

        values: dict[str, Any] = {}
        for port in self.inputs:
            if port.options is not None and port.options.default:
                values[port.name] = port.options.default
                continue
            fallback = _TYPE_DEFAULTS.get(port.type)
            if fallback is not None:
                values[port.name] = fallback
        return values


_TYPE_DEFAULTS: dict[str, Any] = {"int": 0, "float": 0.0, "str": "", "bool": False}

NodeMetaMap = Mapping[str, NodeMeta]


@dataclass(frozen=True, slots=True)
class Position:
    x: float = 0.0
    y: float = 0.0

    def shifted(self, dx: float, dy: float) -> "Position":
        return Position(self.x + dx, self.y + dy)


@dataclass(frozen=True, slots=True)
class NodeInstance:
    """A node placed on the canvas.

    ``generic_types`` is the node's binding map: declared parameter name to the
    concrete tree it has been resolved to.  Unresolved parameters are absent.
    """

    id: str
    node_type: str
    execution_type: ExecutionType = ExecutionType.TRIGGERED
    inputs: Mapping[str, Any] = field(default_factory=dict)
    generic_types: Mapping[str, TypeTree] = field(default_factory=dict)
    position: Position = field(default_factory=Position)
    width: float | None = None
    height: float | None = None

    def with_bindings(self, bindings: Mapping[str, TypeTree]) -> "NodeInstance":
        return replace(self, generic_types=dict(bindings))

    def with_execution_type(self, execution_type: ExecutionType) -> "NodeInstance":
        return replace(self, execution_type=execution_type)


@dataclass(frozen=True, slots=True)
class Edge:
    """Wire between two handles.

    Edges whose ``target_handle`` is the trigger handle are route edges; all
    others carry data.  ``animated`` and ``style`` are display hints.
    """

    id: str
    source: str
    source_handle: str | None
    target: str
    target_handle: str | None
    animated: bool = False
    style: Mapping[str, str] | None = None

    @property
    def is_route(self) -> bool:
        return self.target_handle == TRIGGER_HANDLE

    def touches_handle(self, node_id: str, handle: str) -> bool:
        return (self.source == node_id and self.source_handle == handle) or (
            self.target == node_id and self.target_handle == handle
        )


# ---------------------------------------------------------------------------
# Metadata loading


def node_metas_from_mapping(data: Mapping[str, Any]) -> dict[str, NodeMeta]:
    """Build :class:`NodeMeta` values from the backend's ``node-metas`` payload."""

    if not isinstance(data, Mapping):
        raise ValueError("node metadata must be a mapping of node type to declaration")
    return {str(node_type): _meta_from_mapping(str(node_type), raw) for node_type, raw in data.items()}


def load_node_metas(path: str | Path) -> dict[str, NodeMeta]:
    """Read node metadata from a YAML or JSON file."""

    return node_metas_from_mapping(load_config(path))


def _meta_from_mapping(node_type: str, raw: Any) -> NodeMeta:
    if not isinstance(raw, Mapping):
        raise ValueError(f"metadata for {node_type!r} must be a mapping")
    execution_raw = raw.get("execution")
    execution = ExecutionType(execution_raw) if execution_raw else None
    return NodeMeta(
        title=str(raw.get("title", node_type)),
        category=str(raw.get("category", "")),
        inputs=_ports_from_sequence(node_type, raw.get("inputs")),
        outputs=_ports_from_sequence(node_type, raw.get("outputs")),
        generic_types=tuple(str(name) for name in raw.get("generic_types") or ()),
        execution=execution,
        no_trigger=bool(raw.get("no_trigger", False)),
        display=tuple(
            NodeDisplayWidget(name=str(item["name"]), type=str(item["type"]))
            for item in raw.get("display") or ()
        ),
    )


def _ports_from_sequence(node_type: str, raw: Any) -> tuple[NodePort, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, Sequence) or isinstance(raw, (str, bytes)):
        raise ValueError(f"ports of {node_type!r} must be a list")
    ports: list[NodePort] = []
    for item in raw:
        if not isinstance(item, Mapping) or "name" not in item or "type" not in item:
            raise ValueError(f"port declarations of {node_type!r} need 'name' and 'type'")
        ports.append(
            NodePort(
                name=str(item["name"]),
                type=str(item["type"]),
                widget=item.get("widget"),
                options=_options_from_mapping(item.get("options")),
            )
        )
    return tuple(ports)


def _options_from_mapping(raw: Any) -> NodePortOptions | None:
    if not isinstance(raw, Mapping):
        return None
    choices = raw.get("choices") or ()
    return NodePortOptions(
        default=raw.get("default"),
        multiline=bool(raw.get("multiline", False)),
        choices=tuple(str(choice) for choice in choices),
    )
