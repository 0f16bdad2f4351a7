"""Tests for logging configuration."""

import json
import logging

import pytest
import structlog

from terrasynth.logging_config import configure_logging


@pytest.fixture(autouse=True)
def reset_structlog():
    root = logging.getLogger()
    handlers = list(root.handlers)
    yield
    structlog.reset_defaults()
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
    root.setLevel(logging.WARNING)


def test_level_names_are_accepted():
    configure_logging("debug")

    assert logging.getLogger().level == logging.DEBUG


def test_unknown_level_falls_back_to_info():
    configure_logging("chatty")

    assert logging.getLogger().level == logging.INFO


def test_json_output(capsys):
    configure_logging(logging.INFO, json_output=True)

    structlog.get_logger("terrasynth.test").info("resource_registered", kind="queue", name="main")

    line = capsys.readouterr().err.strip().splitlines()[-1]
    event = json.loads(line)
    assert event["event"] == "resource_registered"
    assert event["kind"] == "queue"
    assert event["level"] == "info"
    assert "timestamp" in event


def test_console_output(capsys):
    configure_logging("INFO")

    structlog.get_logger("terrasynth.test").warning("composite_finalized", name="shop")

    err = capsys.readouterr().err
    assert "composite_finalized" in err
    assert "name=shop" in err


def test_level_filters_events(capsys):
    configure_logging("ERROR", json_output=True)

    structlog.get_logger("terrasynth.test").info("hidden")

    assert "hidden" not in capsys.readouterr().err
