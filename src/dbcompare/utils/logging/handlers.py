"""
Logger wrappers and the run-log sink.

``ContextLogger`` attaches fixed context (such as the table being compared)
to every record. ``create_run_log`` opens the append-only run log that
records what happened to each table in a comparison run.
"""

import logging
from pathlib import Path
from typing import Any

RUN_LOG_NAME = "dbcompare.runlog"


class ContextLogger:
    """
    Logger wrapper that adds contextual information to all log messages

    Usage:
        logger = ContextLogger(__name__, table="dbo.Customers")
        logger.info("Captured fingerprints", side="new", rows=1200)
    """

    def __init__(self, name: str, **context: Any):
        self.logger = logging.getLogger(name)
        self.context = context

    def _log(self, level: int, msg: str, *args, exc_info=None, **kwargs) -> None:
        extra = {**self.context, **kwargs}
        self.logger.log(level, msg, *args, exc_info=exc_info, extra=extra)

    def debug(self, msg: str, *args, **kwargs) -> None:
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs) -> None:
        self._log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs) -> None:
        self._log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args, exc_info=None, **kwargs) -> None:
        self._log(logging.ERROR, msg, *args, exc_info=exc_info, **kwargs)


def create_run_log(path: str | Path, name: str = RUN_LOG_NAME) -> logging.Logger:
    """
    Open an append-only run log

    The returned logger writes bare messages to ``path`` (opened in append
    mode, parent directories created) and does not propagate to the root
    logger, so the run log holds only comparison records.

    Args:
        path: Log file path
        name: Logger name; distinct names allow independent run logs

    Returns:
        Configured logger
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    run_log = logging.getLogger(name)
    close_run_log(run_log)

    handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(message)s"))

    run_log.addHandler(handler)
    run_log.setLevel(logging.INFO)
    run_log.propagate = False
    return run_log


def null_run_log(name: str = f"{RUN_LOG_NAME}.disabled") -> logging.Logger:
    """Return a run log that discards everything."""
    run_log = logging.getLogger(name)
    if not run_log.handlers:
        run_log.addHandler(logging.NullHandler())
    run_log.propagate = False
    return run_log


def close_run_log(run_log: logging.Logger) -> None:
    """Close and detach every handler of a run log."""
    for handler in run_log.handlers[:]:
        handler.close()
        run_log.removeHandler(handler)
