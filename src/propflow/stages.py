"""Stage objects for the attribute pipeline.

Each stage is a frozen, callable dataclass wrapping one primitive from
``propflow.attributes``. Unlike bare closures they keep their
configuration inspectable, which the CLI uses to describe pipelines.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Protocol

from propflow.attributes import AttributeSet, DeriveFn, TransformFn, compute, evolve, pick
from propflow.validation import callable_name, check_arity


class Stage(Protocol):
    """A pure AttributeSet -> AttributeSet function."""

    def __call__(self, attrs: AttributeSet) -> Mapping[str, Any]: ...


StageFn = Callable[[AttributeSet], AttributeSet]


def describe_stage(stage: Any) -> str:
    """Short human-readable description of any stage."""
    describe = getattr(stage, "describe", None)
    if callable(describe):
        return describe()
    return callable_name(stage)


def stage_keys(stage: Any) -> tuple[frozenset[str], frozenset[str]]:
    """Get the (reads, writes) key declarations of a stage, if it has any."""
    return (
        frozenset(getattr(stage, "reads", frozenset())),
        frozenset(getattr(stage, "writes", frozenset())),
    )


@dataclass(frozen=True)
class Pick:
    """Keep only the allowed keys.

    Attributes:
        allowed: Keys to keep (a single string is one key)
    """

    allowed: frozenset[str]

    def __post_init__(self) -> None:
        allowed = [self.allowed] if isinstance(self.allowed, str) else self.allowed
        object.__setattr__(self, "allowed", frozenset(allowed))

    def __call__(self, attrs: AttributeSet) -> dict[str, Any]:
        return pick(self.allowed, attrs)

    @property
    def reads(self) -> frozenset[str]:
        return self.allowed

    @property
    def writes(self) -> frozenset[str]:
        return frozenset()

    def describe(self) -> str:
        return f"pick({', '.join(sorted(self.allowed))})"


@dataclass(frozen=True)
class Compute:
    """Merge derived attributes over the input.

    Attributes:
        derive: Function computing the supplemental attributes
        name: Optional label used in descriptions
        reads: Keys derive reads (documentation only)
        writes: Keys derive produces (documentation only)
    """

    derive: DeriveFn
    name: str | None = None
    reads: frozenset[str] = frozenset()
    writes: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        check_arity(self.derive, 1, "derive function")
        object.__setattr__(self, "reads", frozenset(self.reads))
        object.__setattr__(self, "writes", frozenset(self.writes))

    def __call__(self, attrs: AttributeSet) -> dict[str, Any]:
        return compute(self.derive, attrs)

    def describe(self) -> str:
        return f"compute({self.name or callable_name(self.derive)})"


@dataclass(frozen=True, eq=False)
class Evolve:
    """Transform values of matching keys.

    Attributes:
        transforms: Mapping of key to value transform
    """

    transforms: Mapping[str, TransformFn] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for key, transform in self.transforms.items():
            check_arity(transform, 1, f"transform for {key!r}")
        object.__setattr__(self, "transforms", MappingProxyType(dict(self.transforms)))

    def __call__(self, attrs: AttributeSet) -> dict[str, Any]:
        return evolve(self.transforms, attrs)

    @property
    def reads(self) -> frozenset[str]:
        return frozenset(self.transforms)

    @property
    def writes(self) -> frozenset[str]:
        return frozenset(self.transforms)

    def describe(self) -> str:
        parts = [f"{key}: {callable_name(fn)}" for key, fn in self.transforms.items()]
        return f"evolve({', '.join(parts)})"
