"""Connection validation.

Every wire the user drops is evaluated from scratch against the current
graph snapshot.  :func:`validate_connection` never touches the graph; it
returns a :class:`ConnectionDecision` listing the edge to add, the edges to
evict and the binding maps to install, and the editor applies it.  A
rejected decision carries no mutations.

Rules:

* both handles must exist and be of the same kind;
* control wires are always compatible, and a control source handle keeps at
  most one outgoing wire;
* for data wires, if both nodes still have free generic parameters the wire
  is refused, if neither has any the effective types must match (``*``
  matches anything), and otherwise the free side is resolved against the
  concrete side;
* a data input keeps at most one incoming wire.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional, Sequence

from packages.generics.resolver import try_resolve
from packages.generics.type_tree import TypeTree, format_type, types_match
from packages.telemetry import metrics
from packages.telemetry.logger import get_logger

from .colors import RGB, UNRESOLVED_COLOR, rgb_to_css, type_to_color
from .handles import HandleInfo, HandleKind, inspect_handle
from .model import Edge, NodeInstance, NodeMetaMap

__all__ = [
    "ConnectionDecision",
    "ConnectionRequest",
    "EdgeIssue",
    "audit_edges",
    "edge_style",
    "validate_connection",
]

_LOGGER = get_logger("flowtypes.graph.connections")


@dataclass(frozen=True, slots=True)
class ConnectionRequest:
    source: str
    source_handle: str | None
    target: str
    target_handle: str | None

    @property
    def edge_id(self) -> str:
        return f"edge-{self.source}:{self.source_handle}->{self.target}:{self.target_handle}"


@dataclass(frozen=True, slots=True)
class ConnectionDecision:
    """Outcome of a connection attempt.

    ``binding_updates`` maps a node id to its complete new binding map.
    ``evicted`` lists ids of existing edges the new wire replaces.
    """

    accepted: bool
    reason: str
    edge: Optional[Edge] = None
    binding_updates: Mapping[str, Mapping[str, TypeTree]] = field(default_factory=dict)
    evicted: tuple[str, ...] = ()

    @classmethod
    def reject(cls, reason: str) -> "ConnectionDecision":
        return cls(accepted=False, reason=reason)


def validate_connection(
    request: ConnectionRequest,
    nodes: Mapping[str, NodeInstance],
    edges: Sequence[Edge],
    metas: NodeMetaMap,
    *,
    palette: Mapping[str, RGB] | None = None,
    unresolved_color: RGB = UNRESOLVED_COLOR,
) -> ConnectionDecision:
    """Decide whether ``request`` may be added to the graph."""

    source_info = inspect_handle(
        nodes, metas, request.source, request.source_handle, is_source=True
    )
    target_info = inspect_handle(
        nodes, metas, request.target, request.target_handle, is_source=False
    )
    if source_info is None or target_info is None:
        return _rejected(request, "unknown_handle")
    if source_info.kind is not target_info.kind:
        return _rejected(request, "kind_mismatch")

    binding_updates: dict[str, Mapping[str, TypeTree]] = {}
    if source_info.kind is HandleKind.DATA:
        outcome = _check_data_types(request, nodes, source_info, target_info)
        if isinstance(outcome, str):
            return _rejected(request, outcome)
        binding_updates = outcome

    evicted = tuple(_evicted_edges(request, edges, source_info.kind))
    edge = Edge(
        id=request.edge_id,
        source=request.source,
        source_handle=request.source_handle,
        target=request.target,
        target_handle=request.target_handle,
        animated=source_info.kind is HandleKind.CONTROL,
        style=edge_style(source_info, palette=palette, unresolved_color=unresolved_color),
    )

    metrics.emit("flowtypes.connection.accepted", tags={"kind": source_info.kind.value})
    if evicted:
        metrics.emit("flowtypes.edges.evicted", len(evicted))
    _LOGGER.debug(
        "connection accepted | %s evicted=%d resolved=%s",
        request.edge_id,
        len(evicted),
        sorted(binding_updates),
    )
    return ConnectionDecision(
        accepted=True,
        reason="accepted",
        edge=edge,
        binding_updates=binding_updates,
        evicted=evicted,
    )


def _check_data_types(
    request: ConnectionRequest,
    nodes: Mapping[str, NodeInstance],
    source_info: HandleInfo,
    target_info: HandleInfo,
) -> dict[str, Mapping[str, TypeTree]] | str:
    """Return binding updates for an admissible data wire, else a reject reason."""

    source_type, target_type = source_info.type, target_info.type
    if source_type is None or target_type is None:
        return "unknown_handle"
    if source_info.has_unresolved and target_info.has_unresolved:
        return "both_unresolved"
    if not source_info.has_unresolved and not target_info.has_unresolved:
        if not types_match(source_type, target_type):
            return "type_mismatch"
        return {}

    if source_info.has_unresolved:
        free_node, free_type, concrete_type = request.source, source_type, target_type
        parameters = source_info.unresolved
    else:
        free_node, free_type, concrete_type = request.target, target_type, source_type
        parameters = target_info.unresolved

    resolution = try_resolve(free_type, concrete_type, parameters)
    if not resolution.ok:
        # Incompatible and unresolvable look the same to the user.
        metrics.emit("flowtypes.resolution.failed", tags={"kind": resolution.error.kind})
        return "resolution_failed"

    existing = nodes[free_node].generic_types
    merged: dict[str, TypeTree] = dict(resolution.bindings)
    merged.update(existing)
    return {free_node: merged}


def _evicted_edges(
    request: ConnectionRequest, edges: Iterable[Edge], kind: HandleKind
) -> Iterable[str]:
    for edge in edges:
        if kind is HandleKind.CONTROL:
            if edge.source == request.source and edge.source_handle == request.source_handle:
                yield edge.id
        elif edge.target == request.target and edge.target_handle == request.target_handle:
            yield edge.id


def edge_style(
    source_info: HandleInfo,
    *,
    palette: Mapping[str, RGB] | None = None,
    unresolved_color: RGB = UNRESOLVED_COLOR,
) -> dict[str, str] | None:
    """Stroke style for an edge leaving a handle described by ``source_info``."""

    if source_info.kind is HandleKind.CONTROL or source_info.type is None:
        return None
    if source_info.has_unresolved:
        color = unresolved_color
    else:
        color = type_to_color(format_type(source_info.type), palette)
    return {"stroke": rgb_to_css(color)}


def _rejected(request: ConnectionRequest, reason: str) -> ConnectionDecision:
    metrics.emit("flowtypes.connection.rejected", tags={"reason": reason})
    _LOGGER.debug("connection rejected | %s reason=%s", request.edge_id, reason)
    return ConnectionDecision.reject(reason)


# ---------------------------------------------------------------------------
# Whole-graph checks


@dataclass(frozen=True, slots=True)
class EdgeIssue:
    edge_id: str
    reason: str


def audit_edges(
    nodes: Mapping[str, NodeInstance],
    edges: Sequence[Edge],
    metas: NodeMetaMap,
) -> list[EdgeIssue]:
    """Re-run validation for every existing edge.

    Each edge is checked against the graph without itself, so the fan-in and
    fan-out replacement rules do not count it against itself.  Edges are
    replayed in order: bindings resolved by an accepted edge constrain the
    edges checked after it.
    """

    working = dict(nodes)
    issues: list[EdgeIssue] = []
    for edge in edges:
        request = ConnectionRequest(
            source=edge.source,
            source_handle=edge.source_handle,
            target=edge.target,
            target_handle=edge.target_handle,
        )
        others = [other for other in edges if other.id != edge.id]
        decision = validate_connection(request, working, others, metas)
        if not decision.accepted:
            issues.append(EdgeIssue(edge_id=edge.id, reason=decision.reason))
            continue
        for node_id, bindings in decision.binding_updates.items():
            working[node_id] = working[node_id].with_bindings(bindings)
    return issues
