"""Tests for the switchrun command-line front end."""

from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from switchrun.cli import app
from switchrun.core.catalog_loader import write_catalog_file
from switchrun.core.entry import Command, Entry, Exe

runner = CliRunner()


@pytest.fixture
def cli_env(tmp_path: Path, data_dir: Path, monkeypatch) -> list[str]:
    for var in ("XDG_CONFIG_HOME", "XDG_DATA_HOME", "XDG_STATE_HOME", "XDG_CACHE_HOME"):
        monkeypatch.setenv(var, str(tmp_path / var.lower()))
    write_catalog_file(
        str(data_dir / "apps.json"),
        [
            Entry(name="notepad", kind=Exe(path=str(tmp_path / "missing-notepad"))),
            Entry(name="list", kind=Command("ls -la")),
        ],
    )
    return ["--config", str(tmp_path / "config.toml"), "--data-dir", str(data_dir)]


def test_search_lists_candidates(cli_env: list[str]) -> None:
    result = runner.invoke(app, [*cli_env, "search", "note"])
    assert result.exit_code == 0
    assert "notepad" in result.stdout
    assert "Exe" in result.stdout


def test_search_without_candidates(cli_env: list[str]) -> None:
    result = runner.invoke(app, [*cli_env, "search", "zzz"])
    assert result.exit_code == 0
    assert "No candidates." in result.stdout


def test_run_dry_run_prints_argv_without_recording(cli_env: list[str]) -> None:
    result = runner.invoke(app, [*cli_env, "run", "list", "--dry-run"])
    assert result.exit_code == 0
    assert "ls -la" in result.stdout

    history = runner.invoke(app, [*cli_env, "history"])
    assert "No history." in history.stdout


def test_run_dry_run_elevated(cli_env: list[str]) -> None:
    result = runner.invoke(app, [*cli_env, "run", "htop", "--dry-run", "--elevated"])
    assert result.exit_code == 0
    assert "pkexec htop" in result.stdout


def test_failed_launch_exits_nonzero_and_records_use(cli_env: list[str]) -> None:
    result = runner.invoke(app, [*cli_env, "run", "note"])
    assert result.exit_code == 1
    assert "use was still recorded" in result.stdout

    history = runner.invoke(app, [*cli_env, "history"])
    assert history.exit_code == 0
    assert "notepad" in history.stdout


def test_forget_removes_history_entry(cli_env: list[str]) -> None:
    runner.invoke(app, [*cli_env, "run", "note"])

    result = runner.invoke(app, [*cli_env, "forget", "note"])
    assert result.exit_code == 0
    assert "Forgot notepad" in result.stdout

    history = runner.invoke(app, [*cli_env, "history"])
    assert "No history." in history.stdout


def test_config_file_is_created(cli_env: list[str], tmp_path: Path) -> None:
    runner.invoke(app, [*cli_env, "search", ""])
    assert (tmp_path / "config.toml").exists()


def test_default_config_keeps_info_logs_off_the_console(cli_env: list[str]) -> None:
    result = runner.invoke(app, [*cli_env, "search", "note"])
    assert result.exit_code == 0
    assert "Catalog loaded" not in result.output
