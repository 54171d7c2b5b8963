"""Graph editor state.

:class:`GraphEditor` owns the node and edge collections, asks
:func:`~packages.graph.connections.validate_connection` about every new wire
and applies the returned decision in one step.  Nodes are immutable values:
any change replaces the node in the mapping, so a snapshot taken earlier keeps
seeing the old binding map.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable, Mapping, Sequence

from packages.telemetry.logger import get_logger

from .connections import ConnectionDecision, ConnectionRequest, validate_connection
from .handles import HandleView, list_handles
from .model import (
    TRIGGER_HANDLE,
    Edge,
    ExecutionType,
    NodeInstance,
    NodeMetaMap,
    Position,
)
from .settings import EditorConfig

__all__ = ["EditorError", "GraphEditor", "GraphSnapshot", "next_node_id"]

_LOGGER = get_logger("flowtypes.graph.editor")

GraphSnapshot = tuple[dict[str, NodeInstance], tuple[Edge, ...]]

_DUPLICATE_OFFSET = 100.0


class EditorError(ValueError):
    """Raised when an editor action is not allowed on the current graph."""


def next_node_id(nodes: Iterable[NodeInstance]) -> int:
    """Return one past the largest numeric node id (``1`` when there is none)."""

    highest = 0
    for node in nodes:
        try:
            highest = max(highest, int(node.id))
        except ValueError:
            continue
    return highest + 1


class GraphEditor:
    """Mutable holder of the graph, applying changes copy-on-write."""

    def __init__(
        self,
        metas: NodeMetaMap,
        *,
        nodes: Iterable[NodeInstance] | None = None,
        edges: Iterable[Edge] | None = None,
        settings: EditorConfig | None = None,
    ) -> None:
        self.metas = metas
        self.settings = settings or EditorConfig()
        self._nodes: dict[str, NodeInstance] = {}
        self._edges: list[Edge] = []
        self._next_id = 1
        if nodes is None:
            self.reset()
        else:
            self.load(nodes, edges or ())

    # ------------------------------------------------------------------
    # State access

    @property
    def nodes(self) -> Mapping[str, NodeInstance]:
        return dict(self._nodes)

    @property
    def edges(self) -> tuple[Edge, ...]:
        return tuple(self._edges)

    def node(self, node_id: str) -> NodeInstance:
        try:
            return self._nodes[node_id]
        except KeyError:
            raise EditorError(f"unknown node: {node_id}") from None

    def snapshot(self) -> GraphSnapshot:
        return dict(self._nodes), tuple(self._edges)

    def restore(self, snapshot: GraphSnapshot) -> None:
        nodes, edges = snapshot
        self._nodes = dict(nodes)
        self._edges = list(edges)

    def load(self, nodes: Iterable[NodeInstance], edges: Iterable[Edge]) -> None:
        """Replace the whole graph, e.g. after importing a flow file."""

        self._nodes = {node.id: node for node in nodes}
        self._edges = list(edges)
        self._next_id = next_node_id(self._nodes.values())

    def reset(self) -> None:
        """Start over with only the start node."""

        start_id = self.settings.start_node_id
        self._nodes = {
            start_id: NodeInstance(
                id=start_id,
                node_type="StartNode",
                execution_type=ExecutionType.TRIGGERED,
                position=Position(20.0, 20.0),
            )
        }
        self._edges = []
        self._next_id = 1

    # ------------------------------------------------------------------
    # Nodes

    def add_node(self, node_type: str, position: Position | None = None) -> NodeInstance:
        meta = self.metas.get(node_type)
        if meta is None:
            raise EditorError(f"unknown node type: {node_type}")
        node = NodeInstance(
            id=self._allocate_id(),
            node_type=node_type,
            execution_type=meta.execution or ExecutionType.TRIGGERED,
            inputs=meta.default_inputs(),
            position=position or Position(),
        )
        self._nodes[node.id] = node
        return node

    def duplicate_node(self, node_id: str) -> NodeInstance:
        """Copy a node with fresh, empty bindings and no edges."""

        original = self.node(node_id)
        if node_id == self.settings.start_node_id:
            raise EditorError("start node cannot be duplicated")
        clone = NodeInstance(
            id=self._allocate_id(),
            node_type=original.node_type,
            execution_type=original.execution_type,
            inputs=dict(original.inputs),
            position=original.position.shifted(_DUPLICATE_OFFSET, _DUPLICATE_OFFSET),
            width=original.width,
            height=original.height,
        )
        self._nodes[clone.id] = clone
        return clone

    def delete_node(self, node_id: str) -> None:
        if node_id == self.settings.start_node_id:
            raise EditorError("start node cannot be deleted")
        self.node(node_id)
        del self._nodes[node_id]
        self._edges = [
            edge for edge in self._edges if edge.source != node_id and edge.target != node_id
        ]

    def set_inputs(self, node_id: str, values: Mapping[str, object]) -> NodeInstance:
        node = self.node(node_id)
        inputs = dict(node.inputs)
        inputs.update(values)
        updated = replace(node, inputs=inputs)
        self._nodes[node_id] = updated
        return updated

    def set_execution_type(self, node_id: str, execution_type: ExecutionType) -> NodeInstance:
        """Switch a node's execution mode.

        Leaving ``TRIGGERED`` removes the node's trigger handle, so every edge
        attached to it is dropped.
        """

        node = self.node(node_id)
        if node_id == self.settings.start_node_id and execution_type is not ExecutionType.TRIGGERED:
            raise EditorError("start node can only use triggered execution mode")
        if (
            node.execution_type is ExecutionType.TRIGGERED
            and execution_type is not ExecutionType.TRIGGERED
        ):
            kept = [edge for edge in self._edges if not edge.touches_handle(node_id, TRIGGER_HANDLE)]
            dropped = len(self._edges) - len(kept)
            self._edges = kept
            if dropped:
                _LOGGER.info("dropped %d trigger edge(s) of node %s", dropped, node_id)
        updated = node.with_execution_type(execution_type)
        self._nodes[node_id] = updated
        return updated

    def reset_bindings(self, node_id: str) -> NodeInstance:
        """Forget a node's resolved parameters.

        Data edges on the node were validated against the old bindings, so
        they are removed too.
        """

        node = self.node(node_id)
        self._edges = [
            edge
            for edge in self._edges
            if edge.is_route or (edge.source != node_id and edge.target != node_id)
        ]
        updated = node.with_bindings({})
        self._nodes[node_id] = updated
        return updated

    def handles(self, node_id: str, *, outputs: bool) -> list[HandleView]:
        node = self.node(node_id)
        meta = self.metas.get(node.node_type)
        if meta is None:
            return []
        return list(
            list_handles(
                node,
                meta,
                outputs=outputs,
                palette=self.settings.palette,
                unresolved_color=self.settings.unresolved_color,
            )
        )

    # ------------------------------------------------------------------
    # Edges

    def connect(
        self,
        source: str,
        source_handle: str | None,
        target: str,
        target_handle: str | None,
    ) -> ConnectionDecision:
        """Validate a new wire and apply it when accepted."""

        request = ConnectionRequest(source, source_handle, target, target_handle)
        decision = validate_connection(
            request,
            self._nodes,
            self._edges,
            self.metas,
            palette=self.settings.palette,
            unresolved_color=self.settings.unresolved_color,
        )
        if decision.accepted:
            self.apply(decision)
        return decision

    def apply(self, decision: ConnectionDecision) -> None:
        """Install the bindings, evictions and new edge of an accepted decision."""

        if not decision.accepted or decision.edge is None:
            return
        nodes = dict(self._nodes)
        for node_id, bindings in decision.binding_updates.items():
            nodes[node_id] = nodes[node_id].with_bindings(bindings)
        evicted = set(decision.evicted)
        edges = [
            edge for edge in self._edges if edge.id not in evicted and edge.id != decision.edge.id
        ]
        edges.append(decision.edge)
        self._nodes = nodes
        self._edges = edges
        _LOGGER.info(
            "edge %s added | evicted=%d rebound=%s",
            decision.edge.id,
            len(evicted),
            ",".join(sorted(decision.binding_updates)) or "-",
        )

    def remove_edges(self, edge_ids: Sequence[str]) -> None:
        doomed = set(edge_ids)
        self._edges = [edge for edge in self._edges if edge.id not in doomed]

    # ------------------------------------------------------------------

    def _allocate_id(self) -> str:
        while str(self._next_id) in self._nodes:
            self._next_id += 1
        value = str(self._next_id)
        self._next_id += 1
        return value
