"""Construction-time arity checks for stages and handlers."""

from __future__ import annotations

import inspect
from collections.abc import Callable
from typing import Any

from propflow.errors import CompositionArityError


def callable_name(fn: Any) -> str:
    """Best-effort readable name for a callable."""
    name = getattr(fn, "display_name", None) or getattr(fn, "__qualname__", None) or getattr(fn, "__name__", None)
    return name if isinstance(name, str) else repr(fn)


def accepts_positional(fn: Callable[..., Any], count: int) -> bool:
    """Check whether fn can be called with exactly `count` positional arguments.

    Callables without an introspectable signature (some builtins) are
    accepted as-is.
    """
    try:
        sig = inspect.signature(fn)
    except (TypeError, ValueError):
        return True

    try:
        sig.bind(*range(count))
    except TypeError:
        return False
    return True


def check_arity(fn: Any, count: int, role: str) -> None:
    """Verify fn is a callable taking `count` positional arguments.

    Callables that fit are accepted without reading configuration. A
    mismatch is reported only while the `strict_arity` setting is on.

    Args:
        fn: Callable to check
        count: Number of positional arguments it will receive
        role: Role name used in the error message (e.g. "stage", "predicate")

    Raises:
        CompositionArityError: If fn is not callable or has the wrong arity
    """
    if not callable(fn):
        raise CompositionArityError(f"{role} must be callable, got {type(fn).__name__}")

    if accepts_positional(fn, count):
        return

    from propflow.config import get_config

    if get_config().strict_arity:
        plural = "argument" if count == 1 else "arguments"
        raise CompositionArityError(f"{role} {callable_name(fn)!r} must accept {count} positional {plural}")
