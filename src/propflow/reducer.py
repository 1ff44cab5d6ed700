"""Table-built reducers.

``create_reducer(initial, table)`` turns a declarative list of
(action type, handler) pairs into a reducer ``(state, action) -> state``:

    - state is None       → initial value, whatever the action
    - action.type in table → handler(state, action.payload) (first match)
    - otherwise           → state unchanged

The result is indistinguishable from a hand-written if/elif chain over
``action.type`` ending in ``return state``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from functools import reduce as fold
from typing import Any, Generic, TypeVar

from propflow.validation import callable_name, check_arity

logger = logging.getLogger(__name__)

S = TypeVar("S")

# Type aliases
CaseHandler = Callable[[Any, Any], Any]
ReducerFn = Callable[[Any, Any], Any]


@dataclass(frozen=True)
class Action:
    """An action carrying a type discriminator and optional payload.

    Attributes:
        type: Discriminator compared for exact equality against table tags
        payload: Value handed to the matching handler
    """

    type: str | None = None
    payload: Any = None

    @classmethod
    def coerce(cls, action: Action | Mapping[str, Any] | None) -> Action:
        """Accept an Action, a ``{"type": ..., "payload": ...}`` mapping or None."""
        if action is None:
            return cls()
        if isinstance(action, Action):
            return action
        if isinstance(action, Mapping):
            return cls(type=action.get("type"), payload=action.get("payload"))
        raise TypeError(f"Cannot interpret {type(action).__name__} as an action")


class Reducer(Generic[S]):
    """Reducer built from an ordered dispatch table.

    Attributes:
        initial: Value returned when the incoming state is None
        table: Ordered (tag, handler) pairs
    """

    __slots__ = ("_initial", "_table", "_name")

    def __init__(
        self,
        initial: S,
        table: Sequence[tuple[str, CaseHandler]],
        name: str | None = None,
    ) -> None:
        """Initialize reducer.

        Args:
            initial: Seed value for a None state
            table: Ordered (tag, handler) pairs; handlers take (state, payload)
            name: Optional label for diagnostics

        Raises:
            CompositionArityError: If a handler does not take two arguments
        """
        entries: list[tuple[str, CaseHandler]] = []
        for tag, handler in table:
            check_arity(handler, 2, f"handler for {tag!r}")
            entries.append((tag, handler))

        self._initial = initial
        self._table: tuple[tuple[str, CaseHandler], ...] = tuple(entries)
        self._name = name

    @property
    def initial(self) -> S:
        return self._initial

    @property
    def table(self) -> tuple[tuple[str, CaseHandler], ...]:
        return self._table

    @property
    def tags(self) -> list[str]:
        return [tag for tag, _ in self._table]

    @property
    def name(self) -> str:
        return self._name or "reducer"

    def handler_for(self, action_type: str | None) -> CaseHandler | None:
        """Find the first handler whose tag equals action_type (linear scan)."""
        for tag, handler in self._table:
            if tag == action_type:
                return handler
        return None

    def __call__(self, state: S | None = None, action: Action | Mapping[str, Any] | None = None) -> S:
        if state is None:
            return self._initial

        act = Action.coerce(action)
        handler = self.handler_for(act.type)
        if handler is None:
            logger.debug("%s: unhandled action type %r, state unchanged", self.name, act.type)
            return state

        return handler(state, act.payload)

    def __repr__(self) -> str:
        return f"Reducer({self.name}, initial={self._initial!r}, tags={self.tags})"

    def describe(self) -> str:
        cases = ", ".join(f"{tag} → {callable_name(h)}" for tag, h in self._table)
        return f"{self.name}: {cases or '(no cases)'}; else → state"


def create_reducer(
    initial: S,
    table: Sequence[tuple[str, CaseHandler]] | Mapping[str, CaseHandler],
    name: str | None = None,
) -> Reducer[S]:
    """Build a reducer from an initial value and a dispatch table.

    Args:
        initial: Value returned for a None state
        table: Ordered (tag, handler) pairs, or a mapping (insertion order kept)
        name: Optional label for diagnostics

    Returns:
        Reducer

    Example:
        counter = create_reducer(0, [("INCREMENT", lambda s, p: s + p)])
        counter(3, {"type": "INCREMENT", "payload": 2})  # 5
        counter(3, {"type": "RESET"})                     # 3
    """
    pairs = list(table.items()) if isinstance(table, Mapping) else list(table)
    return Reducer(initial, pairs, name=name)


def combine_reducers(reducers: Mapping[str, ReducerFn]) -> ReducerFn:
    """Combine slice reducers into one reducer over a dict state.

    Each slice reducer receives its own slice of the state (None when the
    slice is absent, so it seeds itself) and the full action. A new dict
    is returned only when some slice changed.
    """
    slices = dict(reducers)
    for key, slice_reducer in slices.items():
        check_arity(slice_reducer, 2, f"reducer for {key!r}")

    def combined(state: Mapping[str, Any] | None = None, action: Any = None) -> dict[str, Any]:
        current = state or {}
        changed = state is None
        next_state: dict[str, Any] = {}
        for key, slice_reducer in slices.items():
            previous = current.get(key)
            updated = slice_reducer(previous, action)
            next_state[key] = updated
            if updated is not previous:
                changed = True
        if not changed:
            return state  # type: ignore[return-value]
        return next_state

    combined.__name__ = "combined"
    combined.__qualname__ = f"combine_reducers({', '.join(slices)})"
    return combined


def replay(reducer: ReducerFn, actions: Iterable[Any], state: Any = None) -> Any:
    """Fold a sequence of actions through a reducer.

    The reducer is first called with ``(state, None)`` so a None state is
    seeded before any action applies.
    """
    seeded = reducer(state, None)
    return fold(reducer, actions, seeded)


def scan(reducer: ReducerFn, actions: Iterable[Any], state: Any = None) -> list[Any]:
    """Like replay, but return every intermediate state (seed included)."""
    current = reducer(state, None)
    states = [current]
    for action in actions:
        current = reducer(current, action)
        states.append(current)
    return states
