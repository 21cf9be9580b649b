import asyncio
from typing import Any, Awaitable, Callable, Sequence, Type

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_incrementing,
)

from memoir.core.settings import logger


def _log_before_sleep(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
    logger.warning(
        "Request attempt %s failed, retrying in %.2fs: %s",
        retry_state.attempt_number,
        delay,
        exc,
    )


class TenacityRetryAdapter:
    """Tenacity-based retry adapter implementing RetryPort.

    Provides progressive backoff: the wait after attempt n is `delay * n`
    (1s, 2s, 3s, ... for delay=1.0). Call-time kwargs can override the
    default policy (attempts, delay, exception_types). `sleep` is injectable
    so tests can run without real delays.
    """

    def __init__(
        self,
        attempts: int = 3,
        delay: float = 1.0,
        exception_types: Sequence[Type[Exception]] = (Exception,),
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.attempts = attempts
        self.delay = delay
        self.exception_types = tuple(exception_types)
        self._sleep = sleep

    async def execute(self, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        attempts = kwargs.pop("attempts", self.attempts)
        delay = kwargs.pop("delay", self.delay)
        exception_types = tuple(kwargs.pop("exception_types", self.exception_types))

        retrying = AsyncRetrying(
            stop=stop_after_attempt(attempts),
            wait=wait_incrementing(start=delay, increment=delay),
            retry=retry_if_exception_type(exception_types),
            before_sleep=_log_before_sleep,
            sleep=self._sleep,
            reraise=True,
        )
        async for attempt in retrying:  # pragma: no cover - control flow instrumentation
            with attempt:
                return await func(*args, **kwargs)
