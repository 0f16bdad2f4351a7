"""
Layered configuration loading.

Sources are applied lowest priority first:

    defaults < terrasynth.yaml < .env < TERRASYNTH_* environment < CLI options

Environment keys map onto the config tree by stripping the prefix and
splitting on ``__``: ``TERRASYNTH_LOGGING__LEVEL=debug`` sets
``logging.level``.
"""

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from dotenv import dotenv_values
from pydantic import ValidationError

from ..exceptions import ConfigError
from .models import SynthConfig

_TRUE_WORDS = ("true", "yes")
_FALSE_WORDS = ("false", "no")


def _overlay(base: Mapping[str, Any], layer: Mapping[str, Any]) -> Dict[str, Any]:
    """Return ``base`` with ``layer`` applied on top, recursing into mappings."""
    merged = dict(base)
    for key, value in layer.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = _overlay(current, value)
        else:
            merged[key] = value
    return merged


def _drop_unset(options: Mapping[str, Any]) -> Dict[str, Any]:
    """Strip None values (options the user did not pass) and empty sections."""
    kept: Dict[str, Any] = {}
    for key, value in options.items():
        if isinstance(value, Mapping):
            value = _drop_unset(value)
            if not value:
                continue
        elif value is None:
            continue
        kept[key] = value
    return kept


class ConfigLoader:
    """Builds a SynthConfig from the file, dotenv and environment layers."""

    DEFAULT_CONFIG_FILE = Path("terrasynth.yaml")
    ENV_PREFIX = "TERRASYNTH_"
    CONFIG_PATH_ENV = "TERRASYNTH_CONFIG"

    def __init__(self, config_path: Optional[Path] = None, dotenv_path: Optional[Path] = None):
        """
        Args:
            config_path: YAML file; defaults to $TERRASYNTH_CONFIG, then
                ./terrasynth.yaml. A missing file is not an error.
            dotenv_path: .env file; defaults to ./.env.
        """
        if config_path is None:
            from_env = os.environ.get(self.CONFIG_PATH_ENV)
            config_path = Path(from_env).expanduser() if from_env else self.DEFAULT_CONFIG_FILE
        self.config_path = config_path
        self.dotenv_path = dotenv_path or Path(".env")

    def load(self) -> SynthConfig:
        """Read every layer and validate the result.

        Raises:
            ConfigError: If a source cannot be parsed or the merged values
                are invalid
        """
        layers = []
        if self.config_path.exists():
            layers.append(self._read_yaml(self.config_path))
        if self.dotenv_path.exists():
            values = dotenv_values(self.dotenv_path)
            layers.append(self._env_tree({k: v for k, v in values.items() if v is not None}))
        layers.append(self._env_tree(os.environ))

        merged: Dict[str, Any] = {}
        for layer in layers:
            merged = _overlay(merged, layer)

        try:
            return SynthConfig.model_validate(merged)
        except ValidationError as e:
            raise ConfigError(
                f"Configuration validation failed: {e}", source=str(self.config_path), cause=e
            ) from e

    def _read_yaml(self, path: Path) -> Dict[str, Any]:
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Cannot read config file {path}: {e}", source=str(path)) from e
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}", source=str(path)) from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping", source=str(path))
        return data

    def _env_tree(self, environ: Mapping[str, str]) -> Dict[str, Any]:
        """Nest TERRASYNTH_* variables into a config tree."""
        tree: Dict[str, Any] = {}
        for key, raw in environ.items():
            if not key.startswith(self.ENV_PREFIX) or key == self.CONFIG_PATH_ENV:
                continue
            *sections, leaf = key[len(self.ENV_PREFIX) :].lower().split("__")
            node = tree
            for section in sections:
                node = node.setdefault(section, {})
            node[leaf] = self._convert_env_value(raw)
        return tree

    def _convert_env_value(self, value: str) -> Any:
        """Interpret an environment string as bool, int or float where it parses."""
        lowered = value.lower()
        if lowered in _TRUE_WORDS:
            return True
        if lowered in _FALSE_WORDS:
            return False
        for number in (int, float):
            try:
                return number(value)
            except ValueError:
                continue
        return value

    def merge_cli_args(self, config: SynthConfig, cli_args: Mapping[str, Any]) -> SynthConfig:
        """Apply command line options on top of a loaded config.

        Options left as None are ignored; when nothing is set the same
        config object is returned.
        """
        options = _drop_unset(cli_args)
        if not options:
            return config

        try:
            return SynthConfig.model_validate(_overlay(config.model_dump(), options))
        except ValidationError as e:
            raise ConfigError(f"Invalid command line options: {e}", source="cli", cause=e) from e


def load_config(
    config_path: Optional[Path] = None,
    cli_args: Optional[Mapping[str, Any]] = None,
    dotenv_path: Optional[Path] = None,
) -> SynthConfig:
    """Load configuration from every source, CLI options last."""
    loader = ConfigLoader(config_path, dotenv_path)
    config = loader.load()
    if cli_args:
        config = loader.merge_cli_args(config, cli_args)
    return config
