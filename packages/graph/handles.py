"""Port/handle inspection.

A handle is one connection point on a placed node: a declared port, or the
reserved trigger handle.  :func:`inspect_handle` reports the handle's kind
(control vs. data), its effective type (declared type with the node's current
bindings substituted) and which of the node type's generic parameters are
still unbound on that node.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Mapping, Optional

from packages.generics.grammar import parse_type
from packages.generics.type_tree import TypeTree, format_type, has_unresolved, substitute

from .colors import RGB, UNRESOLVED_COLOR, type_to_color
from .model import TRIGGER_HANDLE, ExecutionType, NodeInstance, NodeMeta, NodeMetaMap, NodePort

__all__ = ["HandleInfo", "HandleKind", "HandleView", "inspect_handle", "list_handles"]


class HandleKind(str, Enum):
    CONTROL = "control"
    DATA = "data"


@dataclass(frozen=True, slots=True)
class HandleInfo:
    kind: HandleKind
    type: Optional[TypeTree]
    unresolved: frozenset[str] = frozenset()

    @property
    def has_unresolved(self) -> bool:
        return bool(self.unresolved)


_CONTROL = HandleInfo(kind=HandleKind.CONTROL, type=None)


def inspect_handle(
    nodes: Mapping[str, NodeInstance],
    metas: NodeMetaMap,
    node_id: str,
    handle_id: str | None,
    *,
    is_source: bool,
) -> HandleInfo | None:
    """Describe the handle ``handle_id`` of node ``node_id``.

    ``is_source`` selects the node's outputs (``True``) or inputs.  Returns
    ``None`` when the handle id is empty or the node, its metadata or the port
    cannot be found.  Type expressions in the metadata are trusted: a
    malformed one raises :class:`~packages.generics.errors.TypeSyntaxError`.
    """

    if not handle_id:
        return None
    node = nodes.get(node_id)
    if node is None:
        return None
    meta = metas.get(node.node_type)
    if meta is None:
        return None
    if handle_id == TRIGGER_HANDLE:
        return _CONTROL

    port = meta.find_port(handle_id, output=is_source)
    if port is None:
        return None
    if port.is_route:
        return _CONTROL

    declared = parse_type(port.type)
    effective = substitute(declared, node.generic_types)
    unresolved = frozenset(name for name in meta.generic_types if name not in node.generic_types)
    return HandleInfo(kind=HandleKind.DATA, type=effective, unresolved=unresolved)


# ---------------------------------------------------------------------------
# Rendering support


@dataclass(frozen=True, slots=True)
class HandleView:
    """What the canvas needs to draw one handle."""

    id: str
    name: str
    kind: HandleKind
    type: Optional[TypeTree] = None
    unresolved: bool = False
    color: Optional[RGB] = None

    @property
    def type_str(self) -> str | None:
        return format_type(self.type) if self.type is not None else None


def list_handles(
    node: NodeInstance,
    meta: NodeMeta,
    *,
    outputs: bool,
    palette: Mapping[str, RGB] | None = None,
    unresolved_color: RGB = UNRESOLVED_COLOR,
) -> Iterator[HandleView]:
    """Yield the input (or output) handles ``node`` currently exposes.

    Triggered nodes expose the trigger handle first; on the input side it is
    hidden for node types flagged ``no_trigger``.  Data handles are colored by
    their effective type, or ``unresolved_color`` while a parameter is free.
    """

    if node.execution_type is ExecutionType.TRIGGERED and (outputs or not meta.no_trigger):
        yield HandleView(id=TRIGGER_HANDLE, name="", kind=HandleKind.CONTROL)

    parameters = frozenset(meta.generic_types)
    ports = meta.outputs if outputs else meta.inputs
    for port in ports:
        if outputs and port.is_route:
            yield HandleView(id=port.name, name=port.name, kind=HandleKind.CONTROL)
            continue
        yield _data_view(node, port, parameters, palette, unresolved_color)


def _data_view(
    node: NodeInstance,
    port: NodePort,
    parameters: frozenset[str],
    palette: Mapping[str, RGB] | None,
    unresolved_color: RGB,
) -> HandleView:
    effective = substitute(parse_type(port.type or "*"), node.generic_types)
    unresolved = has_unresolved(effective, parameters)
    color = unresolved_color if unresolved else type_to_color(format_type(effective), palette)
    return HandleView(
        id=port.name,
        name=port.name,
        kind=HandleKind.DATA,
        type=effective,
        unresolved=unresolved,
        color=color,
    )
