"""Error types raised by the generic type layer."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:  # pragma: no cover - import for typing only
    from .type_tree import TypeTree

__all__ = ["GenericTypeError", "ResolutionError", "TypeSyntaxError"]


class GenericTypeError(RuntimeError):
    """Base class for failures in the generic type layer."""


class TypeSyntaxError(GenericTypeError):
    """Raised when a type expression cannot be parsed."""

    def __init__(self, message: str, text: str) -> None:
        super().__init__(f"{message}: {text!r}")
        self.message = message
        self.text = text


class ResolutionError(GenericTypeError):
    """Raised when an unresolved type cannot be unified with a concrete one.

    ``kind`` is one of ``"main_type"``, ``"arity"`` or ``"conflict"``.  For
    conflicts ``parameter`` names the generic parameter, ``expected`` holds the
    earlier binding and ``actual`` the binding that disagreed with it.
    """

    def __init__(
        self,
        message: str,
        *,
        kind: str,
        parameter: Optional[str] = None,
        expected: Optional["TypeTree"] = None,
        actual: Optional["TypeTree"] = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.parameter = parameter
        self.expected = expected
        self.actual = actual
