"""Tests for the command-line entry point."""

import logging

import pytest
import structlog
from click.testing import CliRunner

from nodepm import app as app_module
from nodepm import cli


@pytest.fixture
def isolated(monkeypatch, tmp_path):
    """Keep config and logs out of the real home directory."""
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    yield
    structlog.reset_defaults()
    root = logging.getLogger()
    for handler in root.handlers[:]:
        handler.close()
        root.removeHandler(handler)


@pytest.mark.parametrize("flag", ["--help", "-h"])
def test_help_exits_zero(flag):
    result = CliRunner().invoke(cli.main, [flag])

    assert result.exit_code == 0
    assert "--all" in result.output


def test_unknown_flag_rejected():
    result = CliRunner().invoke(cli.main, ["--verbose"])

    assert result.exit_code != 0


def test_runs_app_with_all_flag(monkeypatch, isolated):
    created = {}

    class FakeApp:
        def __init__(self, source, **kwargs):
            created.update(kwargs, source=source)

        def run(self):
            created["ran"] = True

    monkeypatch.setattr(app_module, "NodepmApp", FakeApp)

    result = CliRunner().invoke(cli.main, ["--all"])

    assert result.exit_code == 0
    assert created["ran"]
    assert created["show_all"] is True
    assert created["source"].show_all
    assert created["api_key"] is None


def test_startup_failure_exits_one(monkeypatch, isolated):
    class BrokenApp:
        def __init__(self, *args, **kwargs):
            raise RuntimeError("terminal not supported")

    monkeypatch.setattr(app_module, "NodepmApp", BrokenApp)

    result = CliRunner().invoke(cli.main, [])

    assert result.exit_code == 1
    assert "Failed to start nodepm: terminal not supported" in result.output
