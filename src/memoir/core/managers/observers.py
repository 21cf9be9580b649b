"""Concrete progress observers.

- CallbackProgressObserver: adapts a plain (sync or async) callable
- LoggingProgressObserver: logs each snapshot
- RecordingProgressObserver: keeps every snapshot in arrival order
"""

import inspect
import logging
from typing import Any, Awaitable, Callable, List, Optional, Union

from memoir.core.interfaces.observers import ProgressObserver
from memoir.core.models.session import ProcessingSession


logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProcessingSession], Union[None, Awaitable[None]]]


async def notify(observer: ProgressObserver, session: ProcessingSession) -> None:
    """Invoke `observer` and await its result if it returned an awaitable."""
    outcome = observer.on_progress(session)
    if inspect.isawaitable(outcome):
        await outcome


class CallbackProgressObserver:
    """Wraps a function taking a session so it satisfies ProgressObserver."""

    def __init__(self, callback: ProgressCallback):
        self._callback = callback

    def on_progress(self, session: ProcessingSession) -> Union[None, Awaitable[None]]:
        return self._callback(session)


class LoggingProgressObserver:
    """Logs every progress snapshot at the configured level."""

    def __init__(self, log: Optional[logging.Logger] = None, level: int = logging.INFO):
        self._log = log or logger
        self._level = level

    def on_progress(self, session: ProcessingSession) -> None:
        self._log.log(
            self._level,
            "Progress update: %s%% - %s (%s) status=%s",
            session.progress_percentage,
            session.current_stage,
            session.pipeline_stage(),
            session.status,
        )


class RecordingProgressObserver:
    """Collects snapshots in arrival order; useful as UI state or a test double."""

    def __init__(self) -> None:
        self.sessions: List[ProcessingSession] = []

    def on_progress(self, session: ProcessingSession) -> None:
        self.sessions.append(session)

    @property
    def latest(self) -> Optional[ProcessingSession]:
        return self.sessions[-1] if self.sessions else None

    @property
    def statuses(self) -> List[str]:
        return [str(s.status) for s in self.sessions]


def as_observer(target: Any) -> Optional[ProgressObserver]:
    """Coerce None, an observer object or a bare callable into an observer."""
    if target is None:
        return None
    if callable(getattr(target, "on_progress", None)):
        return target
    if callable(target):
        return CallbackProgressObserver(target)
    raise TypeError(f"Expected a ProgressObserver or callable, got {type(target).__name__}")
