"""Tests for stages and right-to-left composition."""

import logging

import pytest

from propflow.compose import Pipeline, compose, identity
from propflow.config import PropflowConfig, clear_config_instance, set_config_instance
from propflow.errors import CompositionArityError
from propflow.stages import Compute, Evolve, Pick, describe_stage


@pytest.fixture(autouse=True)
def default_config():
    """Use default configuration for every test."""
    set_config_instance(PropflowConfig())
    yield
    clear_config_instance()


def add_one(attrs):
    return {**attrs, "trace": attrs.get("trace", "") + "1"}


def add_two(attrs):
    return {**attrs, "trace": attrs.get("trace", "") + "2"}


def add_three(attrs):
    return {**attrs, "trace": attrs.get("trace", "") + "3"}


class TestStages:
    """Test the stage dataclasses."""

    def test_pick_stage(self):
        stage = Pick({"a"})
        assert stage({"a": 1, "b": 2}) == {"a": 1}
        assert stage.reads == frozenset({"a"})
        assert stage.describe() == "pick(a)"

    def test_pick_accepts_any_iterable(self):
        assert Pick(["a", "b"]).allowed == frozenset({"a", "b"})

    def test_pick_single_string(self):
        stage = Pick("heading")

        assert stage.allowed == frozenset({"heading"})
        assert stage({"heading": "hi", "h": 1}) == {"heading": "hi"}

    def test_compute_stage(self):
        stage = Compute(lambda a: {"n": len(a["s"])}, name="length", reads={"s"}, writes={"n"})

        assert stage({"s": "abcd"}) == {"s": "abcd", "n": 4}
        assert stage.describe() == "compute(length)"
        assert stage.writes == frozenset({"n"})

    def test_evolve_stage(self):
        stage = Evolve({"heading": str.upper})

        assert stage({"heading": "a", "x": 1}) == {"heading": "A", "x": 1}
        assert stage.reads == stage.writes == frozenset({"heading"})

    def test_evolve_transforms_are_frozen(self):
        transforms = {"heading": str.upper}
        stage = Evolve(transforms)
        transforms["heading"] = str.lower

        assert stage({"heading": "a"}) == {"heading": "A"}
        with pytest.raises(TypeError):
            stage.transforms["other"] = str.lower  # type: ignore[index]

    def test_compute_rejects_wrong_arity(self):
        with pytest.raises(CompositionArityError, match="derive function"):
            Compute(lambda a, b: {})

    def test_evolve_rejects_wrong_arity(self):
        with pytest.raises(CompositionArityError, match="transform for 'heading'"):
            Evolve({"heading": lambda: "x"})

    def test_describe_plain_function(self):
        assert describe_stage(add_one) == "add_one"


class TestCompose:
    """Test composition order and laws."""

    def test_rightmost_applies_first(self):
        pipeline = compose([add_one, add_two, add_three])
        assert pipeline({})["trace"] == "321"

    def test_empty_is_identity(self):
        attrs = {"a": 1}
        result = compose([])(attrs)

        assert result == attrs
        assert result is not attrs

    def test_identity_stage(self):
        assert identity({"a": 1}) == {"a": 1}

    def test_associativity(self):
        attrs = {"trace": "0"}
        flat = compose([add_one, add_two, add_three])(attrs)
        right = compose([add_one, compose([add_two, add_three])])(attrs)
        left = compose([compose([add_one, add_two]), add_three])(attrs)

        assert flat == right == left

    def test_nested_pipelines_are_flattened(self):
        inner = compose([add_two, add_three])
        outer = compose([add_one, inner])

        assert outer.stages == (add_one, add_two, add_three)
        assert len(outer) == 3

    def test_application_order(self):
        pipeline = compose([add_one, add_two])
        assert pipeline.application_order == (add_two, add_one)

    def test_does_not_mutate_input(self):
        attrs = {"heading": "a", "drop": True}
        compose([Evolve({"heading": str.upper}), Pick({"heading"})])(attrs)
        assert attrs == {"heading": "a", "drop": True}

    def test_rejects_non_callable(self):
        with pytest.raises(CompositionArityError, match="must be callable"):
            compose(["not a stage"])  # type: ignore[list-item]

    def test_rejects_wrong_arity(self):
        with pytest.raises(CompositionArityError, match="1 positional argument"):
            compose([lambda a, b: a])

    def test_arity_check_can_be_disabled(self):
        set_config_instance(PropflowConfig(strict_arity=False))
        pipeline = compose([lambda a, b=None, *, c: a])
        assert isinstance(pipeline, Pipeline)

    def test_logs_application_order(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="propflow.compose"):
            compose([Evolve({"heading": str.upper}), Pick({"heading"})], name="shout")

        assert "Pipeline shout application order" in caplog.text
        assert "pick(heading) → evolve(heading" in caplog.text


class TestPipelineRendering:
    """Test the diagnostic renderings."""

    def test_ascii(self):
        pipeline = compose([Evolve({"heading": str.upper}), Pick({"heading", "children"})])
        text = pipeline.to_ascii()

        assert text.index("pick(children, heading)") < text.index("evolve(heading")
        assert "reads: children, heading" in text
        assert "▼" in text

    def test_ascii_empty(self):
        assert compose([]).to_ascii() == "(identity)"

    def test_mermaid(self):
        pipeline = compose([add_one, add_two])
        text = pipeline.to_mermaid()

        assert text.startswith("graph TD")
        assert '    s0["add_two"]' in text
        assert "    input --> s0" in text
        assert "    s1 --> output" in text

    def test_repr(self):
        assert repr(compose([add_one], name="p")) == "Pipeline(p: [add_one])"
