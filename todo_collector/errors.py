"""
Error logging utilities for todo-collector.

Logs full stack traces for debugging while showing clean messages to users.
"""

import os
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

ERROR_LOG_FILENAME = "todo-collector-errors.log"


def _error_log_path(state_dir: Optional[Path] = None) -> Path:
    """Resolve error log path, respecting TODO_COLLECTOR_STATE_PATH."""
    if state_dir is not None:
        return Path(state_dir) / ERROR_LOG_FILENAME
    override = os.environ.get("TODO_COLLECTOR_STATE_PATH")
    if override:
        return Path(override) / ERROR_LOG_FILENAME
    return Path.home() / ".todo-collector" / ERROR_LOG_FILENAME


def log_exception(exc: Exception, context: str = "", state_dir: Optional[Path] = None) -> Path:
    """
    Log exception with full traceback to file.

    Args:
        exc: The exception that occurred
        context: Optional context string (e.g., pass or command name)
        state_dir: Directory for the error log (default: per-user location)

    Returns:
        Path to the error log file
    """
    log_path = _error_log_path(state_dir)
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(log_path, os.O_WRONLY | os.O_CREAT | os.O_APPEND, 0o600)
        with os.fdopen(fd, "a") as f:
            f.write(f"\n{'='*60}\n")
            f.write(f"[{timestamp}]")
            if context:
                f.write(f" {context}")
            f.write("\n")
            f.write("".join(traceback.format_exception(exc)))
    except OSError:
        pass  # Unwritable error log is not fatal
    return log_path
