# src/moroutines/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures the local (gitignored) log directory exists when file logging is on,
- wires a TickDriver and a fresh TaskRegistry into a Runtime.
"""

from __future__ import annotations

import logging

from ..config import Settings, get_settings
from ..core.runtime import Runtime, init
from ..tasks.task_scheduler import TickDriver

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings: Settings) -> None:
    if settings.log_to_file:
        settings.log_dir.mkdir(parents=True, exist_ok=True)


def create_runtime(*, settings: Settings | None = None) -> Runtime:
    """
    Create a Runtime from the provided settings.

    Keeping settings injectable makes the demos easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    runtime = init(settings, driver=TickDriver())
    logger.debug("Runtime created for %s", settings.app_name)
    return runtime
