"""Predicate dispatch for conditional rendering.

A dispatcher holds an ordered list of (predicate, handler) branches and a
default handler. Branches are evaluated strictly in declaration order and
the first matching predicate wins; the default runs only when nothing
matches.

Formal Model:
    cond([(p1, h1) ... (pn, hn)], d)(a) =
        h1(a) if p1(a) else ... hn(a) if pn(a) else d(a)
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence, Sized
from dataclasses import dataclass
from typing import Any, NamedTuple

from propflow.attributes import AttributeSet, as_missing_attribute
from propflow.errors import MissingAttributeError, NoMatchError
from propflow.validation import callable_name, check_arity

logger = logging.getLogger(__name__)

# Type aliases
PredicateFn = Callable[[AttributeSet], bool]
HandlerFn = Callable[[AttributeSet], Any]


class Branch(NamedTuple):
    """One (predicate, handler) pair."""

    predicate: PredicateFn
    handler: HandlerFn


def T(attrs: AttributeSet) -> bool:
    """Predicate that always matches."""
    return True


def has(key: str) -> PredicateFn:
    """Predicate: attribute ``key`` is present and truthy."""

    def predicate(attrs: AttributeSet) -> bool:
        return bool(attrs.get(key))

    predicate.__name__ = f"has_{key}"
    predicate.__qualname__ = f"has({key!r})"
    return predicate


def is_empty(key: str) -> PredicateFn:
    """Predicate: attribute ``key`` is an empty collection.

    None counts as empty. An absent key does not match, so a dispatcher
    falls through to its later branches or default.
    """

    def predicate(attrs: AttributeSet) -> bool:
        if key not in attrs:
            return False
        value = attrs[key]
        if value is None:
            return True
        return isinstance(value, Sized) and len(value) == 0

    predicate.__name__ = f"is_empty_{key}"
    predicate.__qualname__ = f"is_empty({key!r})"
    return predicate


def negate(predicate: PredicateFn) -> PredicateFn:
    """Complement of a predicate."""

    def negated(attrs: AttributeSet) -> bool:
        return not predicate(attrs)

    negated.__name__ = f"not_{getattr(predicate, '__name__', 'predicate')}"
    negated.__qualname__ = f"not({callable_name(predicate)})"
    return negated


def always(value: Any) -> HandlerFn:
    """Handler ignoring its attributes and returning a constant."""

    def handler(attrs: AttributeSet) -> Any:
        return value

    handler.__name__ = "always"
    handler.__qualname__ = f"always({value!r})"
    return handler


def _call(fn: Callable[[AttributeSet], Any], attrs: AttributeSet) -> Any:
    # KeyErrors naming an absent attribute become MissingAttributeError
    try:
        return fn(attrs)
    except MissingAttributeError:
        raise
    except KeyError as e:
        missing = as_missing_attribute(e, attrs, callable_name(fn))
        if missing is None:
            raise
        raise missing from e


def dispatch(
    branches: Iterable[Branch | tuple[PredicateFn, HandlerFn]],
    default: HandlerFn | None,
    attrs: AttributeSet,
) -> Any:
    """Run the handler of the first branch whose predicate matches.

    Args:
        branches: (predicate, handler) pairs in priority order
        default: Handler used when nothing matches (None to fail instead)
        attrs: Attribute set to dispatch on

    Returns:
        Result of the selected handler

    Raises:
        MissingAttributeError: If a predicate or handler reads a missing key
        NoMatchError: If nothing matches and default is None
    """
    for predicate, handler in branches:
        if _call(predicate, attrs):
            logger.debug("Dispatch matched '%s' → '%s'", callable_name(predicate), callable_name(handler))
            return _call(handler, attrs)

    if default is None:
        raise NoMatchError(f"No branch matched attributes {sorted(attrs)} and no default handler is set")

    logger.debug("Dispatch fell through to default '%s'", callable_name(default))
    return _call(default, attrs)


@dataclass(frozen=True)
class Dispatcher:
    """Reusable, immutable dispatcher.

    Attributes:
        branches: Branches in priority order
        default: Fallback handler, or None to raise NoMatchError
        display_name: Optional diagnostic label
    """

    branches: tuple[Branch, ...]
    default: HandlerFn | None = None
    display_name: str | None = None

    def __post_init__(self) -> None:
        branches = tuple(Branch(*pair) for pair in self.branches)
        for predicate, handler in branches:
            check_arity(predicate, 1, "predicate")
            check_arity(handler, 1, "handler")
        if self.default is not None:
            check_arity(self.default, 1, "default handler")
        object.__setattr__(self, "branches", branches)

    def __call__(self, attrs: AttributeSet) -> Any:
        return dispatch(self.branches, self.default, attrs)

    @property
    def name(self) -> str:
        return self.display_name or "Dispatcher"

    def describe(self) -> str:
        parts = [f"{callable_name(p)} → {callable_name(h)}" for p, h in self.branches]
        fallback = callable_name(self.default) if self.default is not None else "<no match>"
        parts.append(f"else → {fallback}")
        return f"cond({'; '.join(parts)})"


def cond(
    branches: Sequence[Branch | tuple[PredicateFn, HandlerFn]],
    default: HandlerFn | None = None,
    *,
    display_name: str | None = None,
) -> Dispatcher:
    """Build a dispatcher from ordered branches and a default.

    Example:
        Content = cond(
            [(has("loading"), Loading), (is_empty("items"), Missing)],
            default=Section,
        )
    """
    return Dispatcher(tuple(branches), default, display_name)


def if_else(
    predicate: PredicateFn,
    on_true: HandlerFn,
    on_false: HandlerFn,
    *,
    display_name: str | None = None,
) -> Dispatcher:
    """Two-way dispatcher: on_true if predicate matches, on_false otherwise."""
    return Dispatcher((Branch(predicate, on_true),), on_false, display_name)
