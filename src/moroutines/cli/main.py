# src/moroutines/cli/main.py

"""
CLI entrypoint (moroutines-demo).

Initializes logging, builds a Runtime, runs one named demo, then shuts the runtime down.
"""

from __future__ import annotations

import logging
import sys

from ..cli.bootstrap import create_runtime
from ..cli.commands import registry
from ..config import get_settings
from ..core.errors import MoroutineError
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def _shutdown(runtime) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    try:
        runtime.shutdown()
    except Exception:
        logger.exception("Runtime shutdown failed.")


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    settings = get_settings()

    # choose console log level from settings.log_level
    level_name = str(settings.log_level).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(
        log_dir=settings.log_dir if settings.log_to_file else None,
        console_level=console_level,
    )

    line = " ".join(argv) if argv else "help"
    logger.debug("Starting %s demo %r", settings.app_name, line)

    # IMPORTANT: reuse same settings object
    runtime = create_runtime(settings=settings)
    try:
        reply = registry.handle(runtime, line, emit=print)
    except MoroutineError as exc:
        logger.error("Demo %r failed: %s", line, exc)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted.")
        return 130
    finally:
        _shutdown(runtime)

    print(reply)
    return 0 if not reply.startswith(("Unknown demo", "No demo")) else 2


if __name__ == "__main__":
    raise SystemExit(main())
