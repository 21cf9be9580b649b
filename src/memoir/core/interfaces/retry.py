from typing import Any, Awaitable, Callable, Protocol


class RetryPort(Protocol):
    """Request-level retry policy used by the job client.

    One logical request may span several attempts. Only the exception types
    the caller names are retried; everything else propagates on first raise.
    When the attempts run out the last exception is re-raised unchanged.
    """

    async def execute(self, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:  # pragma: no cover - protocol
        """Run `func(*args, **kwargs)` until it succeeds or the policy gives up.

        Keyword overrides consumed by the policy (not passed to `func`):
            attempts: total attempts including the first
            delay: base wait in seconds; the wait after attempt n is delay * n
            exception_types: tuple of exception classes that are retryable
        """
        ...
