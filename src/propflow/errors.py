"""Exception hierarchy for propflow.

All failures are local and recoverable: none of them leave a Pipeline,
Component or Reducer in a modified state.
"""

from __future__ import annotations


class PropflowError(Exception):
    """Base class for all propflow errors."""


class MissingAttributeError(PropflowError, KeyError):
    """A derive function or predicate read an attribute that is not present.

    Attributes:
        key: The attribute key that was missing
        source: Name of the stage or branch that performed the read
    """

    def __init__(self, key: object, source: str | None = None) -> None:
        super().__init__(key)
        self.key = key
        self.source = source

    def __str__(self) -> str:
        if self.source:
            return f"missing attribute {self.key!r} (in {self.source})"
        return f"missing attribute {self.key!r}"


class NoMatchError(PropflowError, LookupError):
    """No predicate matched and the dispatcher has no default handler."""


class CompositionArityError(PropflowError, TypeError):
    """A stage or handler cannot be called with the arity its role requires."""


class ConfigError(PropflowError):
    """A configured import path could not be resolved."""
