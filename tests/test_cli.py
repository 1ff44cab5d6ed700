"""Tests for the propflow CLI."""

import json
from pathlib import Path

import pytest

from propflow.cli import Apply, Inspect, Install, List, Reduce, get_templates_dir, install_config, main
from propflow.config import clear_config_instance


@pytest.fixture(autouse=True)
def cleanup(monkeypatch):
    """Isolate the global configuration between tests."""
    monkeypatch.delenv("PROPFLOW_CONFIG_DIR", raising=False)
    clear_config_instance()
    yield
    clear_config_instance()


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    """Install the bundled template into a temp config directory."""
    install_config(tmp_path)
    return tmp_path


class TestInstall:
    """Test installing the configuration template."""

    def test_installs_template(self, tmp_path, capsys):
        target = tmp_path / "conf"
        install_config(target)

        installed = (target / "propflow.yaml").read_text()
        assert installed == (get_templates_dir() / "propflow.yaml").read_text()
        assert "Installed propflow.yaml" in capsys.readouterr().out

    def test_refuses_overwrite(self, config_dir, capsys):
        with pytest.raises(SystemExit) as exc_info:
            install_config(config_dir)

        assert exc_info.value.code == 1
        assert "already exists" in capsys.readouterr().out

    def test_force(self, config_dir):
        (config_dir / "propflow.yaml").write_text("propflow: {}\n")
        install_config(config_dir, force=True)
        assert "pipelines" in (config_dir / "propflow.yaml").read_text()

    def test_main_install(self, tmp_path):
        main(Install(), config_dir=tmp_path / "new")
        assert (tmp_path / "new" / "propflow.yaml").exists()


class TestList:
    """Test listing configured entries."""

    def test_lists_everything(self, config_dir, capsys):
        main(List(), config_dir=config_dir)

        out = capsys.readouterr().out
        assert "pipeline" in out
        assert "section" in out
        assert "counter" in out

    def test_nothing_configured(self, tmp_path, capsys):
        main(List(), config_dir=tmp_path)
        assert "Nothing configured" in capsys.readouterr().out


class TestInspect:
    """Test pipeline inspection."""

    def test_json(self, config_dir, capsys):
        main(Inspect(name="section", output="json"), config_dir=config_dir)

        data = json.loads(capsys.readouterr().out)
        assert data["name"] == "section"
        assert data["application_order"][0].startswith("pick(")
        assert data["application_order"][1] == "compute(add_length)"
        assert data["application_order"][2] == "evolve(heading: str.upper)"
        assert data["stages"][1]["writes"] == ["children_length"]

    def test_mermaid(self, config_dir, capsys):
        main(Inspect(name="shout", output="mermaid"), config_dir=config_dir)

        out = capsys.readouterr().out
        assert out.startswith("graph TD")
        assert "s1 --> output" in out

    def test_ascii(self, config_dir, capsys):
        main(Inspect(name="section"), config_dir=config_dir)

        out = capsys.readouterr().out
        assert "Pipeline: section" in out
        assert "Application Order" in out

    def test_unknown(self, config_dir, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(Inspect(name="nope"), config_dir=config_dir)

        assert exc_info.value.code == 1
        assert "Unknown pipeline 'nope'" in capsys.readouterr().err


class TestApply:
    """Test running pipelines and components."""

    def test_pipeline(self, config_dir, capsys):
        main(Apply(name="shout", attrs='{"heading": "a", "junk": 1}'), config_dir=config_dir)

        assert json.loads(capsys.readouterr().out) == {"heading": "A"}

    def test_pipeline_name_takes_precedence(self, config_dir, capsys):
        main(Apply(name="section", attrs='{"heading": "a", "children": "xy"}'), config_dir=config_dir)

        out = capsys.readouterr().out
        assert json.loads(out) == {"heading": "A", "children": "xy", "children_length": 2}

    def test_component_is_rendered(self, tmp_path, capsys):
        (tmp_path / "propflow.yaml").write_text(
            "propflow:\n  components:\n    section: propflow.gallery.section.Section\n"
        )
        main(Apply(name="section", attrs='{"heading": "a", "children": "xy"}'), config_dir=tmp_path)

        out = capsys.readouterr().out.strip()
        assert out == "<section><h1>A</h1><div>xy</div><div>2</div></section>"

    def test_dispatcher_component(self, config_dir, capsys):
        main(Apply(name="content", attrs='{"loading": true, "items": []}'), config_dir=config_dir)
        assert capsys.readouterr().out.strip() == "Loading..."

    def test_from_yaml_file(self, config_dir, tmp_path, capsys):
        attrs_file = tmp_path / "attrs.yaml"
        attrs_file.write_text("heading: hello\nchildren: abc\n")

        main(Apply(name="section", file=attrs_file), config_dir=config_dir)

        assert json.loads(capsys.readouterr().out)["children_length"] == 3

    def test_invalid_json(self, config_dir, capsys):
        with pytest.raises(SystemExit):
            main(Apply(name="shout", attrs="{nope"), config_dir=config_dir)

        assert "Invalid JSON for attributes" in capsys.readouterr().err

    def test_not_an_object(self, config_dir, capsys):
        with pytest.raises(SystemExit):
            main(Apply(name="shout", attrs="[1, 2]"), config_dir=config_dir)

        assert "Attributes must be an object" in capsys.readouterr().err

    def test_missing_attribute(self, config_dir, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(Apply(name="section", attrs='{"heading": "a"}'), config_dir=config_dir)

        assert exc_info.value.code == 1
        assert "missing attribute 'children'" in capsys.readouterr().err

    def test_stage_failure_reports_error(self, config_dir, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(Apply(name="section", attrs='{"heading": "a", "children": 5}'), config_dir=config_dir)

        assert exc_info.value.code == 1
        assert "Error:" in capsys.readouterr().err


class TestReduce:
    """Test replaying actions through reducers."""

    def test_final_state(self, config_dir, capsys):
        actions = '[{"type": "INCREMENT", "payload": 2}, {"type": "INCREMENT"}]'
        main(Reduce(name="counter", actions=actions), config_dir=config_dir)

        assert json.loads(capsys.readouterr().out) == 3

    def test_starting_state(self, config_dir, capsys):
        main(Reduce(name="counter", actions='[{"type": "DECREMENT"}]', state="10"), config_dir=config_dir)
        assert json.loads(capsys.readouterr().out) == 9

    def test_steps(self, config_dir, capsys):
        main(Reduce(name="counter", actions='[{"type": "INCREMENT"}, {"type": "RESET"}]', steps=True), config_dir=config_dir)

        lines = capsys.readouterr().out.strip().splitlines()
        assert lines == ["seed: 0", '{"type": "INCREMENT"}: 1', '{"type": "RESET"}: 0']

    def test_actions_must_be_list(self, config_dir, capsys):
        with pytest.raises(SystemExit):
            main(Reduce(name="counter", actions='{"type": "INCREMENT"}'), config_dir=config_dir)

        assert "Actions must be a list" in capsys.readouterr().err

    def test_unknown_reducer(self, config_dir, capsys):
        with pytest.raises(SystemExit):
            main(Reduce(name="nope"), config_dir=config_dir)

        assert "Unknown reducer 'nope'" in capsys.readouterr().err

    def test_handler_failure_reports_error(self, config_dir, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(Reduce(name="counter", actions='[{"type": "INCREMENT", "payload": "x"}]'), config_dir=config_dir)

        assert exc_info.value.code == 1
        assert "Error:" in capsys.readouterr().err
