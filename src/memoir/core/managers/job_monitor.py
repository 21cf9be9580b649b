"""JobMonitor: polls a processing session until it reaches a terminal outcome.

States: Starting -> Polling -> {Completed, Failed, TimedOut, Aborted}.

Each poll fetches the raw status, normalizes it and notifies the progress
observer before deciding whether to continue. Two independent budgets bound
the loop: `max_consecutive_errors` failed polls in a row (Aborted) and the
overall `max_duration` (TimedOut). Request-level retries live in the job
client and are invisible here; one failed poll is one failed logical request.

Polls for a session are strictly sequential: the next status request is only
issued after the previous one and its observer notification have finished.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional, Set

from memoir.adapters.asyncio_clock import AsyncioClock
from memoir.core.config import MonitorConfig
from memoir.core.exceptions import (
    PollingExhaustedError,
    ProcessingFailedError,
    ProcessingTimeoutError,
)
from memoir.core.interfaces.clock import ClockPort
from memoir.core.interfaces.job_client import JobClientPort
from memoir.core.interfaces.observers import ProgressObserver
from memoir.core.logging_config import bind_session_id
from memoir.core.managers.observers import as_observer, notify
from memoir.core.managers.result_transformer import ResultTransformer
from memoir.core.managers.status_normalizer import StatusNormalizer
from memoir.core.models.results import ProcessingResults
from memoir.core.models.session import ProcessingSession, SessionStatus
from memoir.core.settings import logger


class CancellationToken:
    """Caller-side switch to abandon a monitor.

    Cancelling releases any pending poll timer immediately. A status request
    already sent is not aborted, but its outcome is discarded.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()


class MonitorHandle:
    """Completion signal for a monitor started in the background.

    `await handle` (or `await handle.result()`) yields the ProcessingResults
    or raises the classified error. After `cancel()` the outcome is cancelled:
    it is neither resolved nor rejected, whatever the loop was doing.
    """

    def __init__(self, session_id: str, task: "asyncio.Task[ProcessingResults]", token: CancellationToken):
        self.session_id = session_id
        self._task = task
        self._token = token
        self._outcome: "asyncio.Future[ProcessingResults]" = asyncio.get_running_loop().create_future()
        task.add_done_callback(self._settle)

    def _settle(self, task: "asyncio.Task[ProcessingResults]") -> None:
        if self._outcome.done():
            # Retrieve to avoid "exception was never retrieved" warnings
            if not task.cancelled():
                task.exception()
            return
        if task.cancelled():
            self._outcome.cancel()
        elif task.exception() is not None:
            self._outcome.set_exception(task.exception())
        else:
            self._outcome.set_result(task.result())

    def cancel(self) -> bool:
        """Stop monitoring. Returns False if the outcome was already settled."""
        self._token.cancel()
        if self._outcome.done():
            return False
        logger.debug(f"[monitor:cancel] cancellation requested session_id={self.session_id}")
        self._outcome.cancel()
        return True

    def cancelled(self) -> bool:
        return self._outcome.cancelled()

    def done(self) -> bool:
        return self._outcome.done()

    @property
    def task(self) -> "asyncio.Task[ProcessingResults]":
        return self._task

    async def result(self) -> ProcessingResults:
        return await self._outcome

    def __await__(self):
        return self._outcome.__await__()


class JobMonitor:
    """Drives the poll loop for processing sessions.

    Attributes:
        config: Immutable polling configuration (interval, duration and error budgets)
    """

    def __init__(
        self,
        job_client: JobClientPort,
        config: Optional[MonitorConfig] = None,
        normalizer: Optional[StatusNormalizer] = None,
        transformer: Optional[ResultTransformer] = None,
        clock: Optional[ClockPort] = None,
    ) -> None:
        self._client = job_client
        self.config = config or MonitorConfig()
        self._normalizer = normalizer or StatusNormalizer()
        self._transformer = transformer or ResultTransformer()
        self._clock = clock or AsyncioClock()
        self._handles: Set[MonitorHandle] = set()

    # ---------------- Background monitoring -----------------
    def start(
        self,
        session_id: str,
        on_progress: Any = None,
        *,
        poll_interval: Optional[float] = None,
        max_duration: Optional[float] = None,
    ) -> MonitorHandle:
        """Schedule `monitor` as a task and return its completion handle."""
        token = CancellationToken()
        task = asyncio.create_task(
            self.monitor(
                session_id,
                on_progress,
                poll_interval=poll_interval,
                max_duration=max_duration,
                cancel_token=token,
            )
        )
        handle = MonitorHandle(session_id, task, token)
        self._handles.add(handle)
        task.add_done_callback(lambda t: self._handles.discard(handle))
        logger.debug(f"[monitor:start] scheduled monitor session_id={session_id}")
        return handle

    async def shutdown(self) -> None:
        """Cancel every running monitor and wait for their tasks to finish."""
        handles = list(self._handles)
        for handle in handles:
            handle.cancel()
        if handles:
            await asyncio.gather(*(h.task for h in handles), return_exceptions=True)

    # ---------------- Poll loop -----------------
    async def monitor(
        self,
        session_id: str,
        on_progress: Any = None,
        *,
        poll_interval: Optional[float] = None,
        max_duration: Optional[float] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> ProcessingResults:
        """Poll `session_id` until completed, failed, exhausted or timed out.

        Args:
            session_id: Session returned by job submission
            on_progress: ProgressObserver or callable receiving each session snapshot
            poll_interval: Seconds between polls (defaults to config)
            max_duration: Overall budget in seconds (defaults to config)
            cancel_token: Optional token to abandon monitoring

        Returns:
            Transformed results of the completed session.

        Raises:
            ProcessingFailedError: backend reported the session as failed
            PollingExhaustedError: too many consecutive polling failures
            ProcessingTimeoutError: no terminal status within max_duration
            NetworkError: the final results fetch failed
            asyncio.CancelledError: the token was cancelled
        """
        interval = self.config.poll_interval if poll_interval is None else poll_interval
        budget = self.config.max_duration if max_duration is None else max_duration
        if interval <= 0 or budget <= 0:
            raise ValueError("poll_interval and max_duration must be positive")

        token = cancel_token or CancellationToken()
        observer = as_observer(on_progress)

        with bind_session_id(session_id):
            return await self._poll_until_terminal(session_id, observer, interval, budget, token)

    async def _poll_until_terminal(
        self,
        session_id: str,
        observer: Optional[ProgressObserver],
        interval: float,
        budget: float,
        token: CancellationToken,
    ) -> ProcessingResults:
        start = self._clock.monotonic()
        consecutive_errors = 0
        max_errors = self.config.max_consecutive_errors
        logger.debug(
            f"[monitor:poll] starting session_id={session_id} interval={interval}s budget={budget}s"
        )

        while self._clock.monotonic() - start < budget:
            self._raise_if_cancelled(token)

            try:
                session = await self._poll_once(session_id)
            except Exception as exc:
                self._raise_if_cancelled(token)
                consecutive_errors += 1
                logger.warning(
                    "Polling attempt failed (%s/%s) session_id=%s: %s",
                    consecutive_errors,
                    max_errors,
                    session_id,
                    exc,
                )
                if consecutive_errors >= max_errors:
                    raise PollingExhaustedError(session_id, consecutive_errors, exc) from exc
                await self._sleep(interval * self.config.error_backoff_factor, start, budget, token)
                continue

            # Response arrived after cancellation: discard it without notifying
            self._raise_if_cancelled(token)
            consecutive_errors = 0
            await self._notify(observer, session)
            self._raise_if_cancelled(token)

            if session.status == SessionStatus.completed:
                logger.info("Processing completed for session %s", session_id)
                try:
                    results = await self._fetch_results(session_id)
                except Exception:
                    self._raise_if_cancelled(token)
                    raise
                # Results that arrive after cancellation are discarded too
                self._raise_if_cancelled(token)
                return results

            if session.status == SessionStatus.failed:
                logger.debug(f"[monitor:poll] remote failure session_id={session_id}")
                raise ProcessingFailedError(session_id, session.error_messages())

            await self._sleep(interval, start, budget, token)

        elapsed = self._clock.monotonic() - start
        logger.warning(
            f"[monitor:poll] timeout reached session_id={session_id} elapsed={elapsed:.1f}s > {budget}s"
        )
        raise ProcessingTimeoutError(session_id, elapsed, budget)

    async def _poll_once(self, session_id: str) -> ProcessingSession:
        raw = await self._client.fetch_status(session_id)
        session = self._normalizer.normalize(raw, session_id)
        logger.debug(
            f"[monitor:poll] status={session.status} progress={session.progress_percentage} "
            f"stage={session.current_stage!r} session_id={session_id}"
        )
        return session

    async def _fetch_results(self, session_id: str) -> ProcessingResults:
        # Not retried here: the job client already spent its attempt budget
        raw = await self._client.fetch_results(session_id)
        results = self._transformer.transform(raw)
        logger.info(
            "Retrieved results for session %s: %s chapters", session_id, len(results.chapters)
        )
        return results

    async def _notify(self, observer: Optional[ProgressObserver], session: ProcessingSession) -> None:
        if observer is None:
            return
        try:
            await notify(observer, session)
        except Exception as exc:
            logger.error(
                f"[observer:error] on_progress failed observer={type(observer).__name__} "
                f"session_id={session.session_id} error={exc}"
            )

    async def _sleep(self, seconds: float, start: float, budget: float, token: CancellationToken) -> None:
        """Wait `seconds` (capped at the remaining budget) unless cancelled first."""
        self._raise_if_cancelled(token)
        remaining = budget - (self._clock.monotonic() - start)
        delay = max(0.0, min(seconds, remaining))

        sleeper = asyncio.ensure_future(self._clock.sleep(delay))
        waiter = asyncio.ensure_future(token.wait())
        try:
            await asyncio.wait({sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for pending in (sleeper, waiter):
                if not pending.done():
                    pending.cancel()
        self._raise_if_cancelled(token)
        if sleeper.done() and not sleeper.cancelled():
            sleeper.result()

    @staticmethod
    def _raise_if_cancelled(token: CancellationToken) -> None:
        if token.cancelled:
            raise asyncio.CancelledError("monitor cancelled")
