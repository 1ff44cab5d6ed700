"""Configuration management for propflow.

Configuration Discovery Precedence (Highest to Lowest Priority):
===============================================================

1. **PROPFLOW_CONFIG_DIR Environment Variable** (Highest Priority)
   - Looks for: `${PROPFLOW_CONFIG_DIR}/propflow.yaml`

2. **Current Working Directory**
   - Looks for: `./propflow.yaml`

3. **~/.propflow Directory** (Fallback)
   - Looks for: `~/.propflow/propflow.yaml`

The first existing `propflow.yaml` found in this order is used.
If none is found, default configuration is applied.

Example propflow.yaml:
---------------------
propflow:
  debug: false
  strict_arity: true
  pipelines:
    section: propflow.gallery.section.section_props
    shout:
      - propflow.gallery.section.upper_heading
      - propflow.gallery.section.section_attributes
  components:
    section: propflow.gallery.section.Section
  reducers:
    counter: propflow.gallery.counter.counter
"""

import importlib
import logging
import os
import threading
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from propflow.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "propflow.yaml"


def import_object(path: str) -> Any:
    """Import an object from a dotted path.

    Accepts both ``package.module.attr`` and ``package.module:attr``.

    Raises:
        ConfigError: If the module or attribute cannot be found
    """
    if ":" in path:
        module_path, attr_name = path.split(":", 1)
    elif "." in path:
        module_path, attr_name = path.rsplit(".", 1)
    else:
        raise ConfigError(f"Invalid import path '{path}': expected 'module.attribute'")

    try:
        module = importlib.import_module(module_path)
        return getattr(module, attr_name)
    except (ImportError, AttributeError) as e:
        raise ConfigError(f"Failed to import '{path}': {e}") from e


class PropflowConfig(BaseSettings):
    """Main configuration for propflow that reads from propflow.yaml."""

    model_config = SettingsConfigDict(
        env_prefix="PROPFLOW_",
        case_sensitive=False,
        extra="ignore",
    )

    # Core settings
    debug: bool = False
    strict_arity: bool = True

    # Named pipelines: import path of a stage, or list of stage paths composed right to left
    pipelines: dict[str, str | list[str]] = Field(default_factory=dict)

    # Named components and reducers (import paths)
    components: dict[str, str] = Field(default_factory=dict)
    reducers: dict[str, str] = Field(default_factory=dict)

    # Path to propflow config
    config_path: Path = Field(default_factory=lambda: Path(CONFIG_FILENAME))

    @classmethod
    def from_yaml(cls, yaml_path: Path, **kwargs: Any) -> "PropflowConfig":
        """Load configuration from propflow.yaml file.

        Args:
            yaml_path: Path to the propflow.yaml file
            **kwargs: Additional keyword arguments

        Returns:
            PropflowConfig instance

        Raises:
            ConfigError: If the file is not valid YAML
        """
        instance = cls(config_path=yaml_path, **kwargs)

        if not yaml_path.exists():
            return instance

        try:
            with yaml_path.open() as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {yaml_path}: {e}") from e

        section = data.get("propflow", {}) if isinstance(data, dict) else {}
        if not isinstance(section, dict):
            logger.warning("Invalid 'propflow' section in %s: %s", yaml_path, type(section).__name__)
            return instance

        if "debug" in section:
            instance.debug = bool(section["debug"])
        if "strict_arity" in section:
            instance.strict_arity = bool(section["strict_arity"])

        for key in ("pipelines", "components", "reducers"):
            entries = section.get(key)
            if entries is None:
                continue
            if isinstance(entries, dict):
                setattr(instance, key, entries)
            else:
                logger.warning("Invalid %s config format: %s", key, type(entries).__name__)

        return instance

    def load_pipeline(self, name: str) -> Any:
        """Resolve a named pipeline to a stage.

        List entries are composed with ``compose()`` (rightmost first).

        Raises:
            ConfigError: If the name is unknown or an entry cannot be imported
        """
        from propflow.compose import compose

        entry = self.pipelines.get(name)
        if entry is None:
            raise ConfigError(f"Unknown pipeline '{name}'")

        if isinstance(entry, str):
            stage = import_object(entry)
            if not callable(stage):
                raise ConfigError(f"Pipeline '{name}' ({entry}) is not callable")
            return stage

        stages = []
        for stage_path in entry:
            stage = import_object(stage_path)
            if not callable(stage):
                raise ConfigError(f"Stage '{stage_path}' in pipeline '{name}' is not callable")
            stages.append(stage)
        return compose(stages, name=name)

    def load_component(self, name: str) -> Any:
        """Resolve a named component.

        Raises:
            ConfigError: If the name is unknown or the path cannot be imported
        """
        path = self.components.get(name)
        if path is None:
            raise ConfigError(f"Unknown component '{name}'")
        target = import_object(path)
        if not callable(target):
            raise ConfigError(f"Component '{name}' ({path}) is not callable")
        return target

    def load_reducer(self, name: str) -> Any:
        """Resolve a named reducer.

        Raises:
            ConfigError: If the name is unknown or the path cannot be imported
        """
        path = self.reducers.get(name)
        if path is None:
            raise ConfigError(f"Unknown reducer '{name}'")
        reducer = import_object(path)
        if not callable(reducer):
            raise ConfigError(f"Reducer '{name}' ({path}) is not callable")
        return reducer


# Global configuration instance
_config_instance: PropflowConfig | None = None
_config_lock = threading.Lock()


def find_config_file() -> Path | None:
    """Locate propflow.yaml following the discovery precedence."""
    env_config_dir = os.environ.get("PROPFLOW_CONFIG_DIR")
    if env_config_dir:
        candidate = Path(env_config_dir) / CONFIG_FILENAME
        if candidate.exists():
            return candidate
        logger.info("%s not found in PROPFLOW_CONFIG_DIR=%s", CONFIG_FILENAME, env_config_dir)
        return None

    for directory in (Path.cwd(), Path.home() / ".propflow"):
        candidate = directory / CONFIG_FILENAME
        if candidate.exists():
            return candidate
    return None


def get_config() -> PropflowConfig:
    """Get the configuration instance."""
    global _config_instance

    if _config_instance is None:
        with _config_lock:
            # Double-check locking pattern
            if _config_instance is None:
                config_file = find_config_file()
                if config_file is not None:
                    logger.info("Loading propflow config from: %s", config_file)
                    _config_instance = PropflowConfig.from_yaml(config_file)
                else:
                    logger.debug("No %s found, using default config", CONFIG_FILENAME)
                    _config_instance = PropflowConfig()

    return _config_instance


def load_config(config_dir: Path) -> PropflowConfig:
    """Load propflow.yaml from an explicit directory and make it current."""
    config = PropflowConfig.from_yaml(config_dir / CONFIG_FILENAME)
    set_config_instance(config)
    return config


def set_config_instance(config: PropflowConfig) -> None:
    """Set the global configuration instance (for testing)."""
    global _config_instance
    _config_instance = config


def clear_config_instance() -> None:
    """Clear the global configuration instance (for testing)."""
    global _config_instance
    _config_instance = None
