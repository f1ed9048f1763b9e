# tests/conftest.py

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from types import SimpleNamespace

import pytest

from moroutines.core.runtime import Runtime, init
from moroutines.tasks.owner import Owner
from moroutines.tasks.task_scheduler import TickDriver


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with Runtime and the demos.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the environment and any local .env.
    """
    return SimpleNamespace(
        app_name="moroutines-test",
        log_level="DEBUG",
        log_dir=tmp_path / "logs",
        log_to_file=False,
        # No real waiting between ticks in tests.
        tick_interval_seconds=0.0,
        max_ticks=1_000,
        default_auto_destroy=False,
    )


@pytest.fixture()
def driver() -> TickDriver:
    return TickDriver()


@pytest.fixture()
def runtime(settings: SimpleNamespace, driver: TickDriver) -> Iterator[Runtime]:
    """Runtime wired with a fresh TickDriver and registry; shut down after the test."""
    rt = init(settings, driver=driver)
    yield rt
    rt.shutdown()


@pytest.fixture()
def owner() -> Owner:
    return Owner("scene")
