"""One-directional unification of generic parameters.

Given a type tree that still mentions some of a node's declared generic
parameters and a concrete tree from the other end of a wire, the resolver
walks both in lockstep and records which concrete type each parameter stands
for.  The unresolved side drives the structure; the concrete side is never
bound, so this is a match rather than full unification.

Binding rules:

* a parameter leaf (``T``) binds to the whole concrete subtree;
* a parameterised occurrence (``T<U>``) requires the concrete node to have the
  same arity, binds ``T`` to a leaf of the concrete main type and recurses;
* any other node must agree on main type and arity with the concrete node;
* a parameter seen twice must bind to structurally equal trees.

All bindings live in a single flat table regardless of nesting depth.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import AbstractSet, Dict, Optional

from .errors import ResolutionError
from .type_tree import TypeTree, format_type, leaf, types_equal

__all__ = ["Resolution", "resolve_generic_types", "try_resolve"]


@dataclass(frozen=True, slots=True)
class Resolution:
    """Tagged outcome of :func:`try_resolve`.

    Exactly one of ``bindings`` (success) and ``error`` (failure) is
    meaningful; ``ok`` tells which.
    """

    bindings: Dict[str, TypeTree] = field(default_factory=dict)
    error: Optional[ResolutionError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def resolve_generic_types(
    unresolved: TypeTree,
    concrete: TypeTree,
    parameters: AbstractSet[str],
) -> dict[str, TypeTree]:
    """Return the bindings that make ``unresolved`` line up with ``concrete``.

    Raises :class:`ResolutionError` on a main type mismatch, an arity mismatch
    or a conflicting binding.
    """

    resolved: dict[str, TypeTree] = {}
    _unify(unresolved, concrete, parameters, resolved)
    return resolved


def try_resolve(
    unresolved: TypeTree,
    concrete: TypeTree,
    parameters: AbstractSet[str],
) -> Resolution:
    """Like :func:`resolve_generic_types` but returns a :class:`Resolution`."""

    try:
        bindings = resolve_generic_types(unresolved, concrete, parameters)
    except ResolutionError as exc:
        return Resolution(error=exc)
    return Resolution(bindings=bindings)


def _unify(
    unresolved: TypeTree,
    concrete: TypeTree,
    parameters: AbstractSet[str],
    resolved: dict[str, TypeTree],
) -> None:
    if unresolved.main_type in parameters:
        if not unresolved.is_leaf:
            _check_arity(unresolved, concrete)
            _bind(unresolved.main_type, leaf(concrete.main_type), resolved)
            _unify_children(unresolved, concrete, parameters, resolved)
        else:
            _bind(unresolved.main_type, concrete, resolved)
        return

    if unresolved.main_type != concrete.main_type:
        raise ResolutionError(
            f"main type mismatch: {unresolved.main_type} -> {concrete.main_type}",
            kind="main_type",
            expected=unresolved,
            actual=concrete,
        )
    _check_arity(unresolved, concrete)
    _unify_children(unresolved, concrete, parameters, resolved)


def _unify_children(
    unresolved: TypeTree,
    concrete: TypeTree,
    parameters: AbstractSet[str],
    resolved: dict[str, TypeTree],
) -> None:
    for child, target in zip(unresolved.generic_types, concrete.generic_types):
        _unify(child, target, parameters, resolved)


def _check_arity(unresolved: TypeTree, concrete: TypeTree) -> None:
    if unresolved.arity != concrete.arity:
        raise ResolutionError(
            "generic type length mismatch: "
            f"{format_type(unresolved)} -> {format_type(concrete)}",
            kind="arity",
            expected=unresolved,
            actual=concrete,
        )


def _bind(parameter: str, value: TypeTree, resolved: dict[str, TypeTree]) -> None:
    previous = resolved.get(parameter)
    if previous is not None and not types_equal(previous, value):
        raise ResolutionError(
            f"conflict generic type: {parameter} -> {format_type(value)} "
            f"(already bound to {format_type(previous)})",
            kind="conflict",
            parameter=parameter,
            expected=previous,
            actual=value,
        )
    resolved[parameter] = value
