"""
Token identifiers, the canonical storage keys for a token's subject.

A TokenIdentifier is built from one or more identity parts (user id,
purpose tag, ...) and renders to a single case-sensitive string key.
Parts are escaped before joining so distinct part tuples never produce
the same key: ``("a:b",)`` and ``("a", "b")`` stay apart.
"""

from __future__ import annotations

from typing import Any

from errors import ValidationError

SEPARATOR = ":"
_ESCAPE = "\\"


def _escape_part(part: str) -> str:
    return part.replace(_ESCAPE, _ESCAPE * 2).replace(SEPARATOR, _ESCAPE + SEPARATOR)


def canonicalize(*parts: Any) -> str:
    """Render identity parts into a single storage key.

    Args:
        *parts: Identity fields. Non-string values are rendered with ``str()``.

    Returns:
        The canonical key.

    Raises:
        ValidationError: when no parts are given or a part renders empty.
    """
    if not parts:
        raise ValidationError("token identifier needs at least one part")

    rendered = []
    for part in parts:
        text = str(part)
        if not text:
            raise ValidationError("token identifier parts must be non-empty")
        rendered.append(_escape_part(text))
    return SEPARATOR.join(rendered)


class TokenIdentifier:
    """Identity a token is bound to. Equal parts give equal identifiers."""

    __slots__ = ("parts", "key")

    def __init__(self, *parts: Any) -> None:
        self.key = canonicalize(*parts)
        self.parts = tuple(str(p) for p in parts)

    def __str__(self) -> str:
        return self.key

    def __repr__(self) -> str:
        return f"TokenIdentifier({self.key!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TokenIdentifier):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)
