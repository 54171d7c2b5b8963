"""Value representation of parsed generic type expressions.

A :class:`TypeTree` is a main type label plus an ordered tuple of generic
arguments.  Trees are frozen dataclasses so equality is purely structural and
the helpers below always build new trees instead of mutating existing ones.

The module also hosts the small algebra the connection layer relies on:

* :func:`format_type` renders the canonical ``main<a, b>`` form,
* :func:`types_equal` / :func:`types_match` compare trees (the latter lets the
  ``*`` wildcard absorb anything),
* :func:`substitute` applies a binding map and :func:`has_unresolved` reports
  whether any parameter is still free.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import AbstractSet, Any, Mapping, Sequence

__all__ = [
    "WILDCARD",
    "TypeTree",
    "format_type",
    "has_unresolved",
    "leaf",
    "substitute",
    "tree_from_mapping",
    "types_equal",
    "types_match",
]

WILDCARD = "*"


@dataclass(frozen=True, slots=True)
class TypeTree:
    """Immutable generic type node (``main_type`` + generic arguments)."""

    main_type: str
    generic_types: tuple[TypeTree, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.generic_types, tuple):
            object.__setattr__(self, "generic_types", tuple(self.generic_types))
        if self.main_type == WILDCARD and self.generic_types:
            raise ValueError("wildcard type cannot carry generic arguments")

    @property
    def is_leaf(self) -> bool:
        return not self.generic_types

    @property
    def arity(self) -> int:
        return len(self.generic_types)

    def to_mapping(self) -> dict[str, Any]:
        """Return the ``{"mainType", "genericTypes"}`` form used in flow files."""

        return {
            "mainType": self.main_type,
            "genericTypes": [child.to_mapping() for child in self.generic_types],
        }

    def __str__(self) -> str:
        return format_type(self)


def leaf(main_type: str) -> TypeTree:
    return TypeTree(main_type)


def tree_from_mapping(data: Mapping[str, Any]) -> TypeTree:
    """Build a tree from its mapping form, validating the shape.

    Raises :class:`ValueError` when ``data`` is not a mapping with a string
    ``mainType`` and a list of nested mappings under ``genericTypes``.
    """

    if not isinstance(data, Mapping):
        raise ValueError(f"type definition must be a mapping, got {type(data).__name__}")
    main_type = data.get("mainType")
    if not isinstance(main_type, str) or not main_type:
        raise ValueError("type definition requires a non-empty 'mainType' string")
    raw_children = data.get("genericTypes", [])
    if not isinstance(raw_children, Sequence) or isinstance(raw_children, (str, bytes)):
        raise ValueError(f"'genericTypes' of {main_type!r} must be a list")
    return TypeTree(main_type, tuple(tree_from_mapping(child) for child in raw_children))


def format_type(tree: TypeTree) -> str:
    """Render ``tree`` in canonical form (``list<pair<int, str>>``)."""

    if not tree.generic_types:
        return tree.main_type
    inside = ", ".join(format_type(child) for child in tree.generic_types)
    return f"{tree.main_type}<{inside}>"


def types_equal(left: TypeTree, right: TypeTree) -> bool:
    """Order-sensitive structural equality."""

    if left.main_type != right.main_type:
        return False
    if len(left.generic_types) != len(right.generic_types):
        return False
    return all(types_equal(a, b) for a, b in zip(left.generic_types, right.generic_types))


def types_match(left: TypeTree, right: TypeTree) -> bool:
    """Structural equality where ``*`` on either side matches unconditionally."""

    if left.main_type == WILDCARD or right.main_type == WILDCARD:
        return True
    if left.main_type != right.main_type:
        return False
    if len(left.generic_types) != len(right.generic_types):
        return False
    return all(types_match(a, b) for a, b in zip(left.generic_types, right.generic_types))


def substitute(tree: TypeTree, bindings: Mapping[str, TypeTree]) -> TypeTree:
    """Replace bound parameters in ``tree``.

    A node whose main type is bound is replaced wholesale by the bound tree;
    its own generic arguments are dropped.
    """

    bound = bindings.get(tree.main_type)
    if bound is not None:
        return bound
    if not tree.generic_types:
        return tree
    return TypeTree(
        tree.main_type,
        tuple(substitute(child, bindings) for child in tree.generic_types),
    )


def has_unresolved(tree: TypeTree, parameters: AbstractSet[str]) -> bool:
    if tree.main_type in parameters:
        return True
    return any(has_unresolved(child, parameters) for child in tree.generic_types)
