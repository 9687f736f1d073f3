"""
Argbind completion hints.

A completion hint is opaque metadata attached to an option or a param for the
benefit of an external shell-completion generator. The engine stores it and
hands it back unchanged; it never interprets the contents.

Kinds
- none      → no completion at all
- filename  → complete file names
- values    → complete from an enumerated list of (value, description) pairs
- function  → call a named external completion function

Quick example:
    >>> Completion.values(("fast", "go fast"), ("slow", ""))
    Completion(kind='values', pairs=(('fast', 'go fast'), ('slow', '')))
    >>> Completion.function("_ice_targets").name
    '_ice_targets'
"""
from enum import StrEnum
from typing import NamedTuple

from rich.text import Text

from .utils import Unset


class CompletionKind(StrEnum):
    NONE = "none"
    FILENAME = "filename"
    VALUES = "values"
    FUNCTION = "function"


class Completion(NamedTuple):
    """
    Immutable completion hint.

    Use the classmethod constructors instead of building tuples by hand; they
    validate the payload for each kind.
    """
    kind: CompletionKind
    pairs: tuple = ()
    name: str | None = None

    @classmethod
    def none(cls):
        return cls(CompletionKind.NONE)

    @classmethod
    def filename(cls):
        return cls(CompletionKind.FILENAME)

    @classmethod
    def values(cls, *pairs):
        """
        Enumerated completion from (value, description) pairs.

        A bare string is accepted as a pair with an empty description.
        """
        sanitized = []
        for pair in pairs:
            if isinstance(pair, str):
                pair = (pair, "")
            try:
                value, description = pair
            except (TypeError, ValueError):
                raise TypeError("completion values must be (value, description) pairs") from None
            if not isinstance(value, str) or not isinstance(description, str):
                raise TypeError("completion values and descriptions must be strings")
            sanitized.append((value, description))
        return cls(CompletionKind.VALUES, tuple(sanitized))

    @classmethod
    def function(cls, name):
        if not isinstance(name, str):
            raise TypeError("completion function name must be a string")
        elif not (name := name.strip()):
            raise ValueError("completion function name cannot be empty")
        return cls(CompletionKind.FUNCTION, name=name)

    def __repr__(self):
        match self.kind:
            case CompletionKind.VALUES:
                return "Completion(kind='values', pairs=%r)" % (self.pairs,)
            case CompletionKind.FUNCTION:
                return "Completion(kind='function', name=%r)" % self.name
            case _:
                return "Completion(kind=%r)" % str(self.kind)

    def __rich__(self):
        return Text(repr(self), style="dim")


def _sanitize_completion(cls, completion, /):
    """
    Internal: normalize a descriptor's `completion` metadata.

    - None / Unset → Completion.none()
    - Completion → kept as-is
    - anything else → TypeError
    """
    if completion is None or completion is Unset:
        return Completion.none()
    if not isinstance(completion, Completion):
        raise TypeError(f"{cls.__typename__} 'completion' must be a Completion")
    return completion


__all__ = (
    "Completion",
    "CompletionKind",
)
