"""Render primitive.

propflow never renders anything itself. Wrapped components hand their
final attributes to a construct-element callable with the signature
``(component, attrs) -> node``. ``create_element`` is the default: it
returns an opaque ``Element`` record, the same way a UI framework's
``createElement`` describes a render instead of performing it.

``render`` resolves an element tree by calling component render functions.
It exists for the gallery, the CLI and tests; it does no diffing or
scheduling.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

ConstructElement = Callable[[Any, Mapping[str, Any]], Any]


@dataclass(frozen=True, eq=False)
class Element:
    """Description of a pending render.

    Attributes:
        component: The component (or any render callable) to invoke
        attrs: Attributes it will receive
    """

    component: Any
    attrs: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "attrs", MappingProxyType(dict(self.attrs)))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Element):
            return NotImplemented
        return self.component is other.component and dict(self.attrs) == dict(other.attrs)

    def __repr__(self) -> str:
        name = getattr(self.component, "name", None) or getattr(self.component, "__name__", repr(self.component))
        return f"Element({name}, {dict(self.attrs)!r})"


def create_element(component: Any, attrs: Mapping[str, Any]) -> Element:
    """Default construct-element primitive."""
    return Element(component, attrs)


def render(node: Any) -> Any:
    """Resolve an element tree to its final output.

    Elements are rendered by calling their component with their attributes
    and rendering the result again. Lists and tuples are rendered item by
    item. Anything else is returned unchanged.
    """
    while isinstance(node, Element):
        node = node.component(dict(node.attrs))
    if isinstance(node, (list, tuple)):
        return [render(child) for child in node]
    return node
