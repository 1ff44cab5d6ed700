"""Component descriptors and higher-order wrapping.

A Component is an immutable handle around a render function. Wrapping a
component binds an attribute pipeline in front of it: the wrapper's render
transforms the raw attributes, then constructs an element of the target.

Formal Model:
    wrap(C, s)(a) = construct(C, s(a))
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any

from propflow.attributes import AttributeSet
from propflow.element import ConstructElement, create_element
from propflow.stages import Pick, StageFn
from propflow.validation import callable_name, check_arity

RenderFn = Callable[[AttributeSet], Any]


@dataclass(frozen=True, eq=False)
class Component:
    """Immutable descriptor for a renderable unit.

    Attributes:
        render: Function turning an attribute set into a render node
        schema: Declared attributes and their expected value kinds. Only the
            keys matter at runtime (for allow-listing); the kinds are
            informational and never enforced.
        display_name: Optional diagnostic label, no effect on output
    """

    render: RenderFn
    schema: Mapping[str, Any] = field(default_factory=dict)
    display_name: str | None = None

    def __post_init__(self) -> None:
        check_arity(self.render, 1, "render function")
        object.__setattr__(self, "schema", MappingProxyType(dict(self.schema)))

    def __call__(self, attrs: AttributeSet) -> Any:
        return self.render(attrs)

    @property
    def name(self) -> str:
        """Display name, falling back to the render function's name."""
        return self.display_name or callable_name(self.render)

    @property
    def allowed_keys(self) -> frozenset[str]:
        return frozenset(self.schema)

    def with_display_name(self, display_name: str) -> Component:
        """Return a copy of this component carrying a new display name."""
        return replace(self, display_name=display_name)

    def with_schema(self, schema: Mapping[str, Any]) -> Component:
        """Return a copy of this component with a different declared schema."""
        return replace(self, schema=schema)

    def describe(self) -> str:
        return f"<{self.name}>"

    def __repr__(self) -> str:
        keys = ", ".join(sorted(self.schema))
        return f"Component({self.name}, schema=[{keys}])"


def component(
    *,
    schema: Mapping[str, Any] | None = None,
    name: str | None = None,
) -> Callable[[RenderFn], Component]:
    """Decorator turning a render function into a Component.

    Args:
        schema: Declared attributes (key -> expected kind)
        name: Display name (defaults to the function name)

    Returns:
        Decorator function

    Example:
        @component(schema={"heading": str})
        def Title(attrs):
            return f"<h1>{attrs['heading']}</h1>"
    """

    def decorator(fn: RenderFn) -> Component:
        return Component(render=fn, schema=schema or {}, display_name=name or fn.__name__)

    return decorator


def as_component(target: Component | RenderFn) -> Component:
    """Coerce a plain render function into a Component."""
    if isinstance(target, Component):
        return target
    return Component(render=target)


def pick_by_schema(target: Component) -> Pick:
    """Stage keeping only the attributes declared in target's schema."""
    return Pick(target.allowed_keys)


def wrap(
    target: Component | RenderFn,
    stage: StageFn,
    *,
    display_name: str | None = None,
    construct: ConstructElement = create_element,
) -> Component:
    """Bind an attribute stage in front of a component.

    The returned component accepts raw attributes, runs ``stage`` over them
    and hands ``(target, stage(attrs))`` to ``construct``. It declares no
    schema of its own, and can itself be wrapped again.

    Args:
        target: Component to render with the transformed attributes
        stage: Attribute transformation (usually a composed Pipeline)
        display_name: Optional label for the wrapper
        construct: Construct-element primitive

    Returns:
        New Component

    Raises:
        CompositionArityError: If stage is not a one-argument callable
    """
    wrapped = as_component(target)
    check_arity(stage, 1, "stage")
    check_arity(construct, 2, "construct-element primitive")

    def render(attrs: AttributeSet) -> Any:
        return construct(wrapped, stage(attrs))

    render.__name__ = f"wrap_{wrapped.name}"
    render.__qualname__ = f"wrap({wrapped.name})"

    return Component(render=render, display_name=display_name)


def map_props(
    stage: StageFn,
    *,
    display_name: str | None = None,
    construct: ConstructElement = create_element,
) -> Callable[[Component | RenderFn], Component]:
    """Higher-order form of wrap: fix the stage, take the component later.

    Example:
        with_upper_heading = map_props(Evolve({"heading": str.upper}))
        LoudTitle = with_upper_heading(Title)
    """
    check_arity(stage, 1, "stage")

    def hoc(target: Component | RenderFn) -> Component:
        return wrap(target, stage, display_name=display_name, construct=construct)

    return hoc
