"""
Logging configuration for todo-collector.

Warnings go to stderr by default; --verbose switches on debug output.
Each vault also keeps a rotating operations log.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

OPS_LOG_FILENAME = "todo-collector-ops.log"


def configure_console_logging() -> None:
    """Show warnings and errors from todo_collector on stderr."""
    logger = logging.getLogger("todo_collector")
    if not any(isinstance(h, logging.StreamHandler) and getattr(h, "stream", None) is sys.stderr
               for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(logging.WARNING)
        handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        logger.addHandler(handler)


def enable_debug_mode():
    """Enable debug-level logging to stderr."""
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Add stderr handler if not already present
    if not any(isinstance(h, logging.StreamHandler) and getattr(h, "stream", None) is sys.stderr
               for h in root_logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%H:%M:%S"
        ))
        root_logger.addHandler(handler)

    logging.getLogger("todo_collector").setLevel(logging.DEBUG)


def configure_ops_log(state_dir):
    """Configure a persistent operations log for a vault.

    Writes to {state_dir}/todo-collector-ops.log using a rotating file handler
    (1MB max, 3 backups). Always active regardless of --verbose.
    Returns the handler so it can be removed on close().
    """
    state_dir = Path(state_dir)
    state_dir.mkdir(parents=True, exist_ok=True)
    log_path = state_dir / OPS_LOG_FILENAME
    handler = RotatingFileHandler(
        str(log_path),
        maxBytes=1_000_000,
        backupCount=3,
    )
    handler.setLevel(logging.INFO)
    handler.setFormatter(logging.Formatter(
        "%(asctime)s %(levelname)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))

    collector_logger = logging.getLogger("todo_collector")
    collector_logger.addHandler(handler)
    # Ensure INFO reaches the ops log even without --verbose
    if collector_logger.level == logging.NOTSET or collector_logger.level > logging.INFO:
        collector_logger.setLevel(logging.INFO)

    return handler
