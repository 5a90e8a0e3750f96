"""Shared fixtures for switchrun tests."""

from __future__ import annotations

from pathlib import Path

import pytest
import structlog

from switchrun.core.catalog_loader import write_catalog_file
from switchrun.core.entry import Entry, Exe
from switchrun.core.errors import ActivationError
from switchrun.core.log_setup import teardown_logging


class FakeClock:
    """Stands in for the time module."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def time(self) -> float:
        return self.now

    def advance(self, seconds: float = 1.0) -> None:
        self.now += seconds


class RecordingActivator:
    def __init__(self, error: Exception | None = None) -> None:
        self.calls: list[tuple[Entry, bool]] = []
        self.error = error

    def activate(self, entry: Entry, elevated: bool) -> None:
        self.calls.append((entry, elevated))
        if self.error is not None:
            raise self.error


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    teardown_logging()
    structlog.reset_defaults()


@pytest.fixture
def logger():
    return structlog.get_logger("switchrun.tests")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def activator() -> RecordingActivator:
    return RecordingActivator()


@pytest.fixture
def failing_activator() -> RecordingActivator:
    return RecordingActivator(error=ActivationError("notepad", "no such file"))


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    path = tmp_path / "data"
    path.mkdir()
    return path


@pytest.fixture
def notepad_catalog(data_dir: Path) -> Path:
    catalog = data_dir / "apps.json"
    write_catalog_file(str(catalog), [Entry(name="notepad", kind=Exe(path="notepad.exe"))])
    return catalog
