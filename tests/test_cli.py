"""Tests for the command line interface."""

import json
import logging
import sys
import textwrap

import pytest
import structlog
from click.testing import CliRunner

from terrasynth import __version__
from terrasynth.cli import cli, load_stack_module

STACK = textwrap.dedent(
    """
    def synthesize(run):
        vpc = run.build("aws_vpc", "main", {"cidr_block": "10.0.0.0/16"})
        run.build(
            "aws_subnet",
            "a",
            {"vpc_id": vpc.id, "cidr_block": "10.0.1.0/24", "availability_zone": "us-east-1a"},
        )
        run.output("vpc_id", vpc.id)
    """
)


@pytest.fixture(autouse=True)
def reset_logging():
    root = logging.getLogger()
    handlers = list(root.handlers)
    yield
    structlog.reset_defaults()
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
    root.setLevel(logging.WARNING)


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def stack_file(tmp_path):
    def write(source=STACK, name="stack.py"):
        path = tmp_path / name
        path.write_text(source)
        return path

    return write


class TestSynth:
    """Test the synth command."""

    def test_writes_document(self, runner, stack_file, tmp_path):
        out = tmp_path / "out"

        result = runner.invoke(cli, ["synth", str(stack_file()), "-o", str(out), "--log-level", "ERROR"])

        assert result.exit_code == 0, result.output
        document = json.loads((out / "main.tf.json").read_text())
        assert document["resource"]["aws_subnet"]["a"]["vpc_id"] == "${aws_vpc.main.id}"
        assert document["output"] == {"vpc_id": {"value": "${aws_vpc.main.id}"}}

    def test_filename_and_indent_options(self, runner, stack_file, tmp_path):
        result = runner.invoke(
            cli,
            [
                "synth",
                str(stack_file()),
                "-o",
                str(tmp_path),
                "--filename",
                "network.tf.json",
                "--indent",
                "0",
                "--log-level",
                "ERROR",
            ],
        )

        assert result.exit_code == 0, result.output
        text = (tmp_path / "network.tf.json").read_text()
        assert "\n" not in text.rstrip("\n")

    def test_stdout(self, runner, stack_file, tmp_path):
        result = runner.invoke(cli, ["synth", str(stack_file()), "--stdout", "--log-level", "ERROR"])

        assert result.exit_code == 0
        document = json.loads(result.output)
        assert document["resource"]["aws_vpc"]["main"]["cidr_block"] == "10.0.0.0/16"
        assert not (tmp_path / "main.tf.json").exists()

    def test_config_file(self, runner, stack_file, tmp_path):
        (tmp_path / "terrasynth.yaml").write_text(
            "output_dir: build\nproviders:\n  aws:\n    region: eu-west-1\n"
        )

        result = runner.invoke(cli, ["synth", str(stack_file()), "--log-level", "ERROR"])

        assert result.exit_code == 0, result.output
        document = json.loads((tmp_path / "build" / "main.tf.json").read_text())
        assert document["provider"] == {"aws": {"region": "eu-west-1"}}

    def test_validation_error_exits_with_one(self, runner, stack_file, tmp_path):
        source = 'def synthesize(run):\n    run.build("aws_vpc", "main", {"cidr_block": "not-a-cidr"})\n'

        result = runner.invoke(cli, ["synth", str(stack_file(source)), "-o", str(tmp_path / "out")])

        assert result.exit_code == 1
        assert "cidr_block" in result.output
        assert not (tmp_path / "out").exists()

    def test_unresolved_reference_exits_with_one(self, runner, stack_file, tmp_path):
        source = textwrap.dedent(
            """
            from terrasynth import token_for

            def synthesize(run):
                run.build("aws_subnet", "a", {"vpc_id": token_for("aws_vpc", "ghost"), "cidr_block": "10.0.1.0/24"})
            """
        )

        result = runner.invoke(cli, ["synth", str(stack_file(source)), "-o", str(tmp_path / "out")])

        assert result.exit_code == 1
        assert not (tmp_path / "out").exists()

    def test_module_without_synthesize(self, runner, stack_file):
        result = runner.invoke(cli, ["synth", str(stack_file("VALUE = 1\n"))])

        assert result.exit_code == 2
        assert "synthesize" in result.output

    def test_missing_file(self, runner, tmp_path):
        result = runner.invoke(cli, ["synth", str(tmp_path / "absent.py")])

        assert result.exit_code == 2

    def test_emitter_name_is_case_insensitive(self, runner, stack_file, tmp_path):
        out = tmp_path / "out"

        result = runner.invoke(
            cli, ["synth", str(stack_file()), "-o", str(out), "--emitter", "Terraform", "--log-level", "ERROR"]
        )

        assert result.exit_code == 0, result.output
        assert (out / "main.tf.json").exists()

    def test_unknown_emitter(self, runner, stack_file):
        result = runner.invoke(cli, ["synth", str(stack_file()), "--emitter", "pulumi"])

        assert result.exit_code == 2
        assert "pulumi" in result.output

    def test_indent_out_of_range(self, runner, stack_file):
        result = runner.invoke(cli, ["synth", str(stack_file()), "--indent", "12"])

        assert result.exit_code == 2


class TestCheck:
    """Test the check command."""

    def test_all_references_resolve(self, runner, stack_file):
        result = runner.invoke(cli, ["check", str(stack_file())])

        assert result.exit_code == 0, result.output
        assert "all references resolve" in result.output

    def test_reports_unresolved_references(self, runner, stack_file):
        source = textwrap.dedent(
            """
            from terrasynth import token_for

            def synthesize(run):
                run.build("aws_subnet", "a", {"vpc_id": token_for("aws_vpc", "ghost"), "cidr_block": "10.0.1.0/24"})
            """
        )

        result = runner.invoke(cli, ["check", str(stack_file(source))])

        assert result.exit_code == 1
        assert "aws_vpc.ghost" in result.output


class TestMisc:
    """Test kinds, version and module loading."""

    def test_kinds_lists_catalog(self, runner):
        result = runner.invoke(cli, ["kinds"], env={"COLUMNS": "200"})

        assert result.exit_code == 0
        assert "aws_vpc" in result.output
        assert "aws_sqs_queue" in result.output

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_load_dotted_module(self, tmp_path, monkeypatch):
        monkeypatch.setattr(sys, "path", list(sys.path))
        monkeypatch.delitem(sys.modules, "dotted_stack", raising=False)
        (tmp_path / "dotted_stack.py").write_text("def synthesize(run):\n    pass\n")

        module = load_stack_module("dotted_stack")

        assert callable(module.synthesize)
