# src/taskmaster/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, loads tasks, then runs the console REPL.
"""

from __future__ import annotations

import logging
import signal

from ..cli.bootstrap import create_initial_state, load_tasks
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def _shutdown(state) -> None:
    """Best-effort final save (no exceptions should escape)."""
    try:
        with state.lock:
            if not state.store.save():
                logger.warning("Final save failed: %s", state.store.last_persistence_error)
    except Exception:
        logger.exception("Failed to save tasks on shutdown.")


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "WARNING")).upper()
    console_level = getattr(logging, level_name, logging.WARNING)

    log_dir = getattr(settings, "data_dir", ".local/taskmaster")
    setup_logging(log_dir=log_dir, console_level=console_level)

    logger.info("Starting %s...", getattr(settings, "app_name", "taskmaster"))

    # IMPORTANT: reuse same settings object
    state = create_initial_state(settings=settings)
    loaded = load_tasks(state)
    logger.info("Ready with %d tasks", loaded)

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        raise KeyboardInterrupt

    try:
        signal.signal(signal.SIGTERM, _handle_signal)
    except Exception:
        # Some platforms may not support SIGTERM.
        pass

    try:
        if settings.console_enabled:
            run_console_loop(state)
        else:
            logger.info("Console disabled; nothing to run.")
    finally:
        _shutdown(state)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
