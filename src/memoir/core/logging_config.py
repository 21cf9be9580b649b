"""Central logging configuration utilities.

`configure_logging` is called once by the composition root (CLI or host
application). It wires separate stdout/stderr sinks and injects the id of
the session currently being monitored into every log record, so log lines
from concurrent monitors can be told apart. Core code never installs
handlers; it only emits through `LoggingPort` or module loggers.
"""

from __future__ import annotations

import contextvars
import logging
import sys
from contextlib import contextmanager
from typing import Iterator, Optional

# Session id context variable (bound by JobMonitor for the duration of a poll loop)
session_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "session_id", default="-"
)

DEFAULT_FORMAT = (
    "[%(asctime)s] %(levelname)s %(name)s %(session_id)s: %(message)s"
)


def coerce_level(level: int | str | None) -> int:
    if level is None:
        return logging.INFO
    if isinstance(level, int):
        return level
    key = str(level).upper().strip()
    mapping = logging.getLevelNamesMapping()
    return mapping.get(key, logging.INFO)


@contextmanager
def bind_session_id(session_id: str) -> Iterator[None]:
    """Tag all records emitted inside the block with `session_id`."""
    token = session_id_var.set(session_id)
    try:
        yield
    finally:
        session_id_var.reset(token)


class _SessionIdFilter(logging.Filter):
    """Inject session id from contextvar into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - simple
        record.session_id = session_id_var.get()
        return True


class _MaxLevelFilter(logging.Filter):
    def __init__(self, max_level: int):
        super().__init__()
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover
        return record.levelno <= self.max_level


class _MinLevelFilter(logging.Filter):
    def __init__(self, min_level: int):
        super().__init__()
        self.min_level = min_level

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover
        return record.levelno >= self.min_level


def configure_logging(
    level: int | str | None = None,
    fmt: Optional[str] = None,
    quiet_http: bool = True,
) -> None:
    """Configure root logger with separate stdout/stderr sinks & session id.

    Notes
    -----
    * Existing root handlers are removed so repeated calls do not duplicate output.
    * aiohttp's own loggers are raised to WARNING when `quiet_http` is set.
    """
    numeric_level = coerce_level(level)
    fmt = fmt or DEFAULT_FORMAT

    root = logging.getLogger()
    root.setLevel(numeric_level)

    for h in list(root.handlers):
        root.removeHandler(h)

    formatter = logging.Formatter(fmt)
    sid_filter = _SessionIdFilter()

    # stdout handler for DEBUG/INFO
    stdout_handler = logging.StreamHandler(stream=sys.stdout)
    stdout_handler.setLevel(logging.DEBUG)
    stdout_handler.addFilter(_MaxLevelFilter(logging.INFO))
    stdout_handler.addFilter(sid_filter)
    stdout_handler.setFormatter(formatter)

    # stderr handler for WARNING+
    stderr_handler = logging.StreamHandler(stream=sys.stderr)
    stderr_handler.setLevel(logging.WARNING)
    stderr_handler.addFilter(_MinLevelFilter(logging.WARNING))
    stderr_handler.addFilter(sid_filter)
    stderr_handler.setFormatter(formatter)

    root.addHandler(stdout_handler)
    root.addHandler(stderr_handler)

    if quiet_http:
        logging.getLogger("aiohttp").setLevel(logging.WARNING)

    logging.getLogger("memoir").debug(
        "Logging configured level=%s quiet_http=%s", numeric_level, quiet_http
    )
