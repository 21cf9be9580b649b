import logging
from memoir.core.interfaces.logging import LoggingPort
from memoir.core.logging_config import coerce_level

class LoggingAdapter(LoggingPort):
    """Concrete logging adapter.

    Delegates to Python's logging. It intentionally does NOT add its own
    handlers so that central `configure_logging` controls sinks. The session
    id is injected by root handlers via filter; we simply emit.
    """

    def __init__(self, name: str = "memoir", log_level: int | str = logging.INFO):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(coerce_level(log_level))
        # Allow messages to bubble to root handlers (separate sinks)
        self.logger.propagate = True

    def set_level(self, log_level: int | str) -> None:
        self.logger.setLevel(coerce_level(log_level))

    def info(self, msg: str, *args):
        self.logger.info(msg, *args)

    def warning(self, msg: str, *args):
        self.logger.warning(msg, *args)

    def error(self, msg: str, *args):
        self.logger.error(msg, *args)

    def debug(self, msg: str, *args):
        self.logger.debug(msg, *args)
