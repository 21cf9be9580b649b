"""Observer protocol for incremental session progress.

The monitor reports every successful status poll to a single progress
observer. Implementations are substitutable without inheritance: a UI widget,
a logger and a recording test double all satisfy the same capability.
"""

from typing import Awaitable, Protocol, Union

from memoir.core.models.session import ProcessingSession


class ProgressObserver(Protocol):
    """Sink for progress notifications of one monitored session.

    Contract:
    - Called at most once per poll, strictly sequentially: the next poll does
      not start until this call (and any awaitable it returns) has finished.
    - No assumption about call frequency beyond that.
    - The return value is never consulted; it is awaited only if awaitable.
    - Never called after the monitor has been cancelled.
    """

    def on_progress(self, session: ProcessingSession) -> Union[None, Awaitable[None]]:
        """Receive the latest normalized session snapshot.

        Args:
            session: Normalized session for the poll that just completed
        """
        ...
