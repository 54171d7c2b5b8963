"""Parser for generic type expressions.

The grammar is tiny::

    Type := Identifier ( '<' Type (',' Type)* '>' )?

An identifier is any run of characters other than ``<``, ``>`` and ``,``
(surrounding whitespace is ignored).  It names a concrete type, a generic
parameter, or the ``*`` wildcard, which never takes generic arguments.

The outer ``Identifier<...>`` shape is matched with one anchored pattern; the
generics block is then split on top-level commas with a depth counter so that
``pair<int, str>`` inside ``list<...>`` stays a single segment, and each
segment is parsed recursively.
"""

from __future__ import annotations

import re

from .errors import TypeSyntaxError
from .type_tree import WILDCARD, TypeTree

__all__ = ["parse_type", "split_generic_arguments"]

_TYPE_PATTERN = re.compile(r"^([^<>,]+?)\s*(?:<(.+)>\s*)?$", re.DOTALL)


def parse_type(text: str) -> TypeTree:
    """Parse ``text`` into a :class:`TypeTree`.

    Raises :class:`TypeSyntaxError` when brackets are unbalanced, a segment is
    empty, or the wildcard is given generic arguments.
    """

    if not isinstance(text, str):
        raise TypeSyntaxError("type expression must be a string", repr(text))
    try:
        return _parse(text)
    except RecursionError:
        raise TypeSyntaxError("type expression nested too deeply", text[:80]) from None


def _parse(text: str) -> TypeTree:
    source = text.strip()
    match = _TYPE_PATTERN.match(source)
    if match is None:
        raise TypeSyntaxError("invalid type definition", source)

    main_type = match.group(1).strip()
    generics_part = match.group(2)
    if not main_type:
        raise TypeSyntaxError("missing main type", source)
    if generics_part is None:
        return TypeTree(main_type)
    if main_type == WILDCARD:
        raise TypeSyntaxError("wildcard type cannot take generic arguments", source)

    segments = split_generic_arguments(generics_part, source)
    return TypeTree(main_type, tuple(_parse(segment) for segment in segments))


def split_generic_arguments(block: str, source: str | None = None) -> list[str]:
    """Split the inside of a ``<...>`` block on top-level commas."""

    context = source if source is not None else block
    segments: list[str] = []
    depth = 0
    token: list[str] = []
    for ch in block:
        if ch == "<":
            depth += 1
        elif ch == ">":
            depth -= 1
            if depth < 0:
                raise TypeSyntaxError("unbalanced '>'", context)
        if ch == "," and depth == 0:
            segments.append(_finish_segment(token, context))
            token = []
        else:
            token.append(ch)
    if depth != 0:
        raise TypeSyntaxError("unbalanced '<'", context)
    segments.append(_finish_segment(token, context))
    return segments


def _finish_segment(token: list[str], context: str) -> str:
    segment = "".join(token).strip()
    if not segment:
        raise TypeSyntaxError("empty generic argument", context)
    return segment
