"""Right-to-left stage composition.

``compose([f, g, h])`` behaves like ``f(g(h(attrs)))``: the rightmost
declared stage runs first and the leftmost runs last. This is the only
composition order propflow supports; there is no left-to-right ``pipe``.

Formal Model:
    compose([])          = identity
    compose([s1..sn])(a) = s1(s2(...sn(a)))
    compose is associative, so nested pipelines are flattened.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any

from propflow.attributes import AttributeSet
from propflow.stages import StageFn, describe_stage, stage_keys
from propflow.validation import check_arity

logger = logging.getLogger(__name__)


def identity(attrs: AttributeSet) -> dict[str, Any]:
    """Identity stage: returns a copy of its input."""
    return dict(attrs)


class Pipeline:
    """An immutable chain of stages applied right to left.

    Attributes:
        stages: Stages in declaration order (last one runs first)
        name: Optional label for diagnostics
    """

    __slots__ = ("_stages", "_name")

    def __init__(self, stages: Iterable[StageFn], name: str | None = None) -> None:
        """Initialize pipeline, flattening nested pipelines.

        Args:
            stages: Stages in declaration order
            name: Optional label for diagnostics

        Raises:
            CompositionArityError: If a stage is not a one-argument callable
        """
        flat: list[StageFn] = []
        for stage in stages:
            if isinstance(stage, Pipeline):
                flat.extend(stage.stages)
            else:
                check_arity(stage, 1, "stage")
                flat.append(stage)

        self._stages: tuple[StageFn, ...] = tuple(flat)
        self._name = name

        if self._stages:
            logger.debug(
                "Pipeline %s application order: %s",
                name or "<anonymous>",
                " → ".join(describe_stage(s) for s in self.application_order),
            )

    @property
    def stages(self) -> tuple[StageFn, ...]:
        return self._stages

    @property
    def name(self) -> str | None:
        return self._name

    @property
    def application_order(self) -> tuple[StageFn, ...]:
        """Stages in the order they actually run."""
        return tuple(reversed(self._stages))

    def __call__(self, attrs: AttributeSet) -> dict[str, Any]:
        result: AttributeSet = attrs
        for stage in reversed(self._stages):
            result = stage(result)
        return dict(result)

    def __len__(self) -> int:
        return len(self._stages)

    def __repr__(self) -> str:
        inner = ", ".join(describe_stage(s) for s in self._stages)
        label = f"{self._name}: " if self._name else ""
        return f"Pipeline({label}[{inner}])"

    def describe(self) -> str:
        return self._name or repr(self)

    def to_mermaid(self) -> str:
        """Generate Mermaid diagram of the pipeline.

        Returns:
            Mermaid graph definition string
        """
        lines = ["graph TD", "    input([attrs])"]
        previous = "input"
        for i, stage in enumerate(self.application_order):
            node = f"s{i}"
            label = describe_stage(stage).replace('"', "'")
            lines.append(f'    {node}["{label}"]')
            lines.append(f"    {previous} --> {node}")
            previous = node
        lines.append("    output([result])")
        lines.append(f"    {previous} --> output")
        return "\n".join(lines)

    def to_ascii(self) -> str:
        """Generate ASCII representation of the pipeline.

        Returns:
            ASCII art string, one box per stage in application order
        """
        lines: list[str] = []
        for i, stage in enumerate(self.application_order):
            if i > 0:
                lines.append("       │")
                lines.append("       ▼")

            reads, writes = stage_keys(stage)
            lines.append(f"┌{'─' * 40}┐")
            lines.append(f"│ {_clip(describe_stage(stage), 38):<38} │")
            if reads:
                lines.append(f"│   reads: {_clip(', '.join(sorted(reads)), 29):<29} │")
            if writes:
                lines.append(f"│   writes: {_clip(', '.join(sorted(writes)), 28):<28} │")
            lines.append(f"└{'─' * 40}┘")

        if not lines:
            lines.append("(identity)")
        return "\n".join(lines)


def _clip(text: str, width: int) -> str:
    return text if len(text) <= width else text[: width - 1] + "…"


def compose(stages: Sequence[StageFn], name: str | None = None) -> Pipeline:
    """Compose stages right to left into one stage.

    Args:
        stages: Stages in declaration order; the last one is applied first
        name: Optional label for diagnostics

    Returns:
        Pipeline equivalent to applying the stages in sequence

    Example:
        shout = compose([Evolve({"heading": str.upper}), Pick({"heading"})])
        shout({"heading": "a", "other": 1})  # {"heading": "A"}
    """
    return Pipeline(stages, name=name)
