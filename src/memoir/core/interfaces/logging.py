from abc import ABC, abstractmethod
from typing import Union


class LoggingPort(ABC):
    """Logger facade used by managers and adapters.

    Messages accept %-style args so formatting is deferred until a record
    is actually emitted.
    """

    @abstractmethod
    def set_level(self, log_level: Union[int, str]) -> None:
        pass

    @abstractmethod
    def debug(self, msg: str, *args):
        pass

    @abstractmethod
    def info(self, msg: str, *args):
        pass

    @abstractmethod
    def warning(self, msg: str, *args):
        pass

    @abstractmethod
    def error(self, msg: str, *args):
        pass
