"""
Unit tests for configuration system.

Tests configuration loading, validation, merging, and error handling.
"""

from pathlib import Path

import pytest
import yaml

from terrasynth.config import ConfigLoader, LogLevel, SynthConfig, load_config
from terrasynth.exceptions import ConfigError


class TestSynthConfigModel:
    """Test SynthConfig pydantic model validation."""

    def test_default_config(self):
        config = SynthConfig()

        assert config.output_dir == Path(".")
        assert config.filename == "main.tf.json"
        assert config.indent == 2
        assert config.terraform.required_version == ">= 1.5.0"
        assert config.terraform.required_providers["aws"].source == "hashicorp/aws"
        assert config.providers == {}
        assert config.logging.level == LogLevel.INFO
        assert config.logging.json_output is False

    def test_lowercase_log_level(self):
        config = SynthConfig(logging={"level": "debug"})

        assert config.logging.level == LogLevel.DEBUG

    def test_indent_bounds(self):
        with pytest.raises(ValueError):
            SynthConfig(indent=9)
        with pytest.raises(ValueError):
            SynthConfig(indent=-1)

    def test_filename_validation(self):
        with pytest.raises(ValueError, match="path separators"):
            SynthConfig(filename="out/main.tf.json")
        with pytest.raises(ValueError, match="end with .json"):
            SynthConfig(filename="main.tf")

    def test_unknown_keys_are_rejected(self):
        with pytest.raises(ValueError):
            SynthConfig(outdir="build")


class TestConfigLoader:
    """Test loading and merging configuration sources."""

    def test_defaults_without_sources(self, tmp_path):
        config = ConfigLoader(tmp_path / "missing.yaml", tmp_path / ".env").load()

        assert config == SynthConfig()

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "terrasynth.yaml"
        path.write_text(
            yaml.safe_dump(
                {
                    "output_dir": "build",
                    "indent": 4,
                    "providers": {"aws": {"region": "eu-west-1"}},
                    "logging": {"level": "warning"},
                }
            )
        )

        config = ConfigLoader(path).load()

        assert config.output_dir == Path("build")
        assert config.indent == 4
        assert config.providers == {"aws": {"region": "eu-west-1"}}
        assert config.logging.level == LogLevel.WARNING

    def test_default_file_in_working_directory(self, tmp_path):
        (tmp_path / "terrasynth.yaml").write_text("indent: 3\n")

        assert ConfigLoader().load().indent == 3

    def test_config_path_from_environment(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.yaml"
        path.write_text("filename: custom.tf.json\n")
        monkeypatch.setenv("TERRASYNTH_CONFIG", str(path))

        assert ConfigLoader().load().filename == "custom.tf.json"

    def test_environment_overrides_file(self, tmp_path, monkeypatch):
        path = tmp_path / "terrasynth.yaml"
        path.write_text("indent: 4\nlogging:\n  level: INFO\n")
        monkeypatch.setenv("TERRASYNTH_INDENT", "0")
        monkeypatch.setenv("TERRASYNTH_LOGGING__JSON_OUTPUT", "true")
        monkeypatch.setenv("TERRASYNTH_TERRAFORM__REQUIRED_VERSION", ">= 1.6.0")

        config = ConfigLoader(path).load()

        assert config.indent == 0
        assert config.logging.json_output is True
        assert config.terraform.required_version == ">= 1.6.0"

    def test_dotenv_between_file_and_environment(self, tmp_path, monkeypatch):
        path = tmp_path / "terrasynth.yaml"
        path.write_text("indent: 4\nfilename: file.tf.json\n")
        dotenv = tmp_path / ".env"
        dotenv.write_text("TERRASYNTH_INDENT=6\nTERRASYNTH_FILENAME=dotenv.tf.json\n")
        monkeypatch.setenv("TERRASYNTH_FILENAME", "env.tf.json")

        config = ConfigLoader(path, dotenv).load()

        assert config.indent == 6
        assert config.filename == "env.tf.json"

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "terrasynth.yaml"
        path.write_text("indent: [unclosed\n")

        with pytest.raises(ConfigError, match="Invalid YAML"):
            ConfigLoader(path).load()

    def test_non_mapping_yaml(self, tmp_path):
        path = tmp_path / "terrasynth.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ConfigError, match="must contain a mapping"):
            ConfigLoader(path).load()

    def test_invalid_values(self, tmp_path):
        path = tmp_path / "terrasynth.yaml"
        path.write_text("indent: 20\n")

        with pytest.raises(ConfigError) as exc_info:
            ConfigLoader(path).load()

        assert exc_info.value.error_code == "INVALID_CONFIG"
        assert exc_info.value.context["source"] == str(path)


class TestCliMerge:
    """Test merging command line arguments."""

    def test_cli_args_have_highest_priority(self, tmp_path, monkeypatch):
        path = tmp_path / "terrasynth.yaml"
        path.write_text("indent: 4\n")
        monkeypatch.setenv("TERRASYNTH_INDENT", "6")

        config = load_config(path, {"indent": 1, "output_dir": None, "logging": {"level": None}})

        assert config.indent == 1
        assert config.logging.level == LogLevel.INFO

    def test_none_values_are_ignored(self):
        loader = ConfigLoader(Path("missing.yaml"))
        base = SynthConfig(indent=4)

        assert loader.merge_cli_args(base, {"indent": None, "logging": {"json_output": None}}) is base

    def test_invalid_cli_value(self):
        loader = ConfigLoader(Path("missing.yaml"))

        with pytest.raises(ConfigError, match="Invalid command line options"):
            loader.merge_cli_args(SynthConfig(), {"filename": "main.tf"})

    def test_env_value_conversion(self):
        loader = ConfigLoader(Path("missing.yaml"))

        assert loader._convert_env_value("yes") is True
        assert loader._convert_env_value("No") is False
        assert loader._convert_env_value("12") == 12
        assert loader._convert_env_value("1.5") == 1.5
        assert loader._convert_env_value(">= 1.5.0") == ">= 1.5.0"
