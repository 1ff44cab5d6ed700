"""propflow CLI for inspecting and running configured pipelines - Tyro implementation."""

import json
import logging
import shutil
import sys
from builtins import print as builtin_print
from pathlib import Path
from typing import Annotated, Any, Literal, NoReturn

import attrs
import tyro
import yaml
from rich import print
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from propflow.config import CONFIG_FILENAME, PropflowConfig, get_config, load_config
from propflow.element import Element, render
from propflow.errors import PropflowError
from propflow.reducer import replay, scan
from propflow.stages import describe_stage, stage_keys


def get_templates_dir() -> Path:
    """Get the directory holding bundled configuration templates."""
    templates_dir = Path(__file__).parent / "templates"
    if not templates_dir.is_dir():
        raise RuntimeError(f"Templates directory not found: {templates_dir}")
    return templates_dir


# Subcommand definitions using attrs
@attrs.define
class Install:
    """Install a propflow.yaml template into the configuration directory."""

    force: bool = False
    """Overwrite existing configuration."""


@attrs.define
class List:
    """List configured pipelines, components and reducers."""


OutputFormat = Literal["ascii", "mermaid", "json"]


@attrs.define
class Inspect:
    """Show a pipeline's stages in the order they are applied."""

    name: Annotated[str, tyro.conf.Positional]
    """Pipeline name from propflow.yaml."""

    output: Annotated[OutputFormat, tyro.conf.arg(aliases=["-o"])] = "ascii"
    """Output format: ascii, mermaid, json."""


@attrs.define
class Apply:
    """Run a pipeline or component over an attribute set."""

    name: Annotated[str, tyro.conf.Positional]
    """Pipeline or component name from propflow.yaml."""

    attrs: Annotated[str | None, tyro.conf.arg(aliases=["-a"])] = None
    """Attribute set as a JSON object."""

    file: Annotated[Path | None, tyro.conf.arg(aliases=["-f"])] = None
    """Read the attribute set from a JSON or YAML file."""


@attrs.define
class Reduce:
    """Replay actions through a reducer."""

    name: Annotated[str, tyro.conf.Positional]
    """Reducer name from propflow.yaml."""

    actions: Annotated[str | None, tyro.conf.arg(aliases=["-a"])] = None
    """Actions as a JSON list of {"type": ..., "payload": ...} objects."""

    file: Annotated[Path | None, tyro.conf.arg(aliases=["-f"])] = None
    """Read the actions from a JSON or YAML file."""

    state: Annotated[str | None, tyro.conf.arg(aliases=["-s"])] = None
    """Starting state as JSON (default: the reducer's initial value)."""

    steps: bool = False
    """Print every intermediate state instead of only the final one."""


# Type alias for all subcommands
Command = (
    Annotated[Install, tyro.conf.subcommand(name="install")]
    | Annotated[List, tyro.conf.subcommand(name="list")]
    | Annotated[Inspect, tyro.conf.subcommand(name="inspect")]
    | Annotated[Apply, tyro.conf.subcommand(name="apply")]
    | Annotated[Reduce, tyro.conf.subcommand(name="reduce")]
)


def setup_logging(debug: bool = False) -> None:
    """Configure logging with 100-character text width."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s - %(name)-20s - %(levelname)-8s - %(message).100s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def fail(message: str) -> NoReturn:
    """Print an error and exit with status 1."""
    print(f"[red]Error: {message}[/red]", file=sys.stderr)
    sys.exit(1)


def read_structured(inline: str | None, file: Path | None, what: str) -> Any:
    """Parse a JSON/YAML value given inline or as a file.

    Args:
        inline: Inline JSON text
        file: Path to a JSON or YAML file
        what: Description used in error messages

    Returns:
        Parsed value, or None if neither source was given
    """
    if inline is not None and file is not None:
        fail(f"Give {what} either inline or with --file, not both")

    if file is not None:
        if not file.exists():
            fail(f"File not found: {file}")
        try:
            return yaml.safe_load(file.read_text())
        except yaml.YAMLError as e:
            fail(f"Invalid {what} in {file}: {e}")

    if inline is not None:
        try:
            return json.loads(inline)
        except json.JSONDecodeError as e:
            fail(f"Invalid JSON for {what}: {e}")

    return None


def install_config(config_dir: Path, force: bool = False) -> None:
    """Install propflow configuration files.

    Args:
        config_dir: Directory to install configuration files to
        force: Whether to overwrite existing configuration
    """
    dst = config_dir / CONFIG_FILENAME
    if dst.exists() and not force:
        print(f"Configuration file {dst} already exists.")
        print("Use --force to overwrite existing configuration.")
        sys.exit(1)

    config_dir.mkdir(parents=True, exist_ok=True)

    try:
        templates_dir = get_templates_dir()
    except RuntimeError as e:
        fail(str(e))

    shutil.copy2(templates_dir / CONFIG_FILENAME, dst)
    print(f"Installed {CONFIG_FILENAME} to: {config_dir}")
    print("\nNext steps:")
    print(f"  1. Edit {dst} to register your pipelines, components and reducers")
    print("  2. Inspect a pipeline with: propflow inspect section")


def list_entries(config: PropflowConfig) -> None:
    """Print a table of everything configured."""
    console = Console()
    table = Table(show_header=True, header_style="bold")
    table.add_column("Kind", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Target", style="yellow")

    for name, entry in config.pipelines.items():
        target = entry if isinstance(entry, str) else " ∘ ".join(entry)
        table.add_row("pipeline", name, target)
    for name, path in config.components.items():
        table.add_row("component", name, path)
    for name, path in config.reducers.items():
        table.add_row("reducer", name, path)

    if not table.row_count:
        console.print(f"[yellow]Nothing configured in {config.config_path}[/yellow]")
        return
    console.print(table)


def inspect_pipeline(config: PropflowConfig, cmd: Inspect) -> None:
    """Handle inspect subcommand to visualize a pipeline."""
    from propflow.compose import Pipeline

    try:
        stage = config.load_pipeline(cmd.name)
    except PropflowError as e:
        fail(str(e))

    pipeline = stage if isinstance(stage, Pipeline) else Pipeline([stage], name=cmd.name)
    order = pipeline.application_order

    if cmd.output == "mermaid":
        builtin_print(pipeline.to_mermaid())
    elif cmd.output == "json":
        data = {
            "name": cmd.name,
            "application_order": [describe_stage(s) for s in order],
            "stages": [
                {
                    "stage": describe_stage(s),
                    "reads": sorted(stage_keys(s)[0]),
                    "writes": sorted(stage_keys(s)[1]),
                }
                for s in order
            ],
        }
        builtin_print(json.dumps(data, indent=2))
    else:
        console = Console()
        console.print(Panel(f"[bold cyan]Pipeline: {cmd.name}[/bold cyan]", expand=False))
        console.print("\n[bold]Application Order:[/bold]")
        console.print(f"  {' → '.join(describe_stage(s) for s in order) or '(identity)'}")

        table = Table(show_header=True, header_style="bold")
        table.add_column("#", style="dim")
        table.add_column("Stage", style="cyan")
        table.add_column("Reads", style="green")
        table.add_column("Writes", style="yellow")
        for i, s in enumerate(order, start=1):
            reads, writes = stage_keys(s)
            table.add_row(
                str(i),
                describe_stage(s),
                ", ".join(sorted(reads)) or "-",
                ", ".join(sorted(writes)) or "-",
            )
        console.print(table)

        console.print("\n[bold]Pipeline Visualization:[/bold]")
        console.print(pipeline.to_ascii())


def apply_target(config: PropflowConfig, cmd: Apply) -> None:
    """Handle apply subcommand."""
    attributes = read_structured(cmd.attrs, cmd.file, "attributes")
    if attributes is None:
        attributes = {}
    if not isinstance(attributes, dict):
        fail(f"Attributes must be an object, got {type(attributes).__name__}")

    try:
        if cmd.name in config.pipelines:
            target = config.load_pipeline(cmd.name)
        else:
            target = config.load_component(cmd.name)
        result = target(attributes)
        if isinstance(result, Element):
            result = render(result)
    except (PropflowError, TypeError, ValueError, KeyError) as e:
        fail(str(e))

    if isinstance(result, (dict, list)):
        builtin_print(json.dumps(result, indent=2, default=str))
    else:
        builtin_print(result)


def reduce_actions(config: PropflowConfig, cmd: Reduce) -> None:
    """Handle reduce subcommand."""
    actions = read_structured(cmd.actions, cmd.file, "actions")
    if actions is None:
        actions = []
    if not isinstance(actions, list):
        fail(f"Actions must be a list, got {type(actions).__name__}")

    state = read_structured(cmd.state, None, "state")

    try:
        reducer = config.load_reducer(cmd.name)
        if cmd.steps:
            states = scan(reducer, actions, state)
            for i, value in enumerate(states):
                label = "seed" if i == 0 else json.dumps(actions[i - 1], default=str)
                builtin_print(f"{label}: {json.dumps(value, default=str)}")
            return
        final = replay(reducer, actions, state)
    except (PropflowError, TypeError, ValueError, KeyError) as e:
        fail(str(e))

    builtin_print(json.dumps(final, indent=2, default=str))


def main(
    cmd: Annotated[Command, tyro.conf.arg(name="")],
    *,
    config_dir: Annotated[Path | None, tyro.conf.arg(help="Configuration directory")] = None,
) -> None:
    """propflow - declarative attribute pipelines and dispatch tables.

    Inspect and run the pipelines, components and reducers registered
    in propflow.yaml.
    """
    if isinstance(cmd, Install):
        setup_logging()
        install_config(config_dir or Path.home() / ".propflow", force=cmd.force)
        return

    try:
        config = load_config(config_dir) if config_dir is not None else get_config()
    except PropflowError as e:
        fail(str(e))

    setup_logging(debug=config.debug)

    if isinstance(cmd, List):
        list_entries(config)
    elif isinstance(cmd, Inspect):
        inspect_pipeline(config, cmd)
    elif isinstance(cmd, Apply):
        apply_target(config, cmd)
    elif isinstance(cmd, Reduce):
        reduce_actions(config, cmd)


def entry_point() -> None:
    """Entry point for the propflow command."""
    tyro.cli(main)


if __name__ == "__main__":
    entry_point()
