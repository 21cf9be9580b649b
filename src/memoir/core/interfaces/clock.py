from typing import Protocol


class ClockPort(Protocol):
    """Time source for the poll loop.

    Separating the clock lets tests drive timeouts and backoff deterministically
    instead of sleeping for real.
    """

    def monotonic(self) -> float:  # pragma: no cover - protocol
        """Seconds from an arbitrary fixed origin; never goes backwards."""
        ...

    async def sleep(self, seconds: float) -> None:  # pragma: no cover - protocol
        """Suspend the calling task for `seconds`. Must be cancellable."""
        ...
