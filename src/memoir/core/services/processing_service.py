"""ProcessingService: the surface exposed to UI layers.

Composes the job client and the job monitor: submit a chapter's recordings,
start monitoring with a progress observer, and await a completion handle that
carries either the canonical results or a classified error. A failed or timed
out session is retried by submitting again (fresh session id), never resumed.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from memoir.adapters.aiohttp_client_adapter import AioHttpClientAdapter
from memoir.adapters.retry_tenacity import TenacityRetryAdapter
from memoir.core.config import ClientConfig, MonitorConfig
from memoir.core.exceptions import TransportError
from memoir.core.interfaces.http_client import HttpClientPort
from memoir.core.managers.job_client import JobClient
from memoir.core.managers.job_monitor import JobMonitor, MonitorHandle
from memoir.core.managers.result_transformer import ResultTransformer
from memoir.core.managers.status_normalizer import StatusNormalizer
from memoir.core.models.results import ProcessingResults
from memoir.core.models.session import ProcessingSession
from memoir.core.models.submission import ProcessingRequest


class ProcessingService:
    def __init__(
        self,
        http_client: HttpClientPort,
        job_client: JobClient,
        monitor: JobMonitor,
        normalizer: Optional[StatusNormalizer] = None,
        transformer: Optional[ResultTransformer] = None,
    ) -> None:
        self._http = http_client
        self.client = job_client
        self.monitor = monitor
        self._normalizer = normalizer or StatusNormalizer()
        self._transformer = transformer or ResultTransformer()

    async def __aenter__(self) -> "ProcessingService":
        await self._http.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
        return False

    async def close(self) -> None:
        await self.monitor.shutdown()
        await self._http.close()

    async def submit(
        self,
        audio_urls: List[str],
        chapter_title: str,
        chapter_description: str,
        user_preferences: Optional[Dict[str, Any]] = None,
    ) -> str:
        request = ProcessingRequest(
            audio_urls=audio_urls,
            chapter_title=chapter_title,
            chapter_description=chapter_description,
            user_preferences=user_preferences or {},
        )
        return await self.client.submit_job(request)

    async def get_status(self, session_id: str) -> ProcessingSession:
        raw = await self.client.fetch_status(session_id)
        return self._normalizer.normalize(raw, session_id)

    async def get_results(self, session_id: str) -> ProcessingResults:
        raw = await self.client.fetch_results(session_id)
        return self._transformer.transform(raw)

    def start_monitoring(
        self,
        session_id: str,
        on_progress: Any = None,
        *,
        poll_interval: Optional[float] = None,
        max_duration: Optional[float] = None,
    ) -> MonitorHandle:
        return self.monitor.start(
            session_id, on_progress, poll_interval=poll_interval, max_duration=max_duration
        )

    async def process(
        self,
        audio_urls: List[str],
        chapter_title: str,
        chapter_description: str,
        user_preferences: Optional[Dict[str, Any]] = None,
        on_progress: Any = None,
    ) -> ProcessingResults:
        """Submit and wait for the results in one call."""
        session_id = await self.submit(audio_urls, chapter_title, chapter_description, user_preferences)
        return await self.monitor.monitor(session_id, on_progress)


def create_service(
    settings=None,
    client_config: Optional[ClientConfig] = None,
    monitor_config: Optional[MonitorConfig] = None,
    http_client: Optional[HttpClientPort] = None,
) -> ProcessingService:
    """Default wiring: aiohttp transport, tenacity retries, real clock."""
    if settings is None:
        from memoir.core.settings import app_settings as settings

    client_config = client_config or ClientConfig.from_app_settings(settings)
    monitor_config = monitor_config or MonitorConfig.from_app_settings(settings)
    http = http_client or AioHttpClientAdapter(default_timeout=client_config.timeout)
    retry = TenacityRetryAdapter(
        attempts=client_config.retry_attempts,
        delay=client_config.retry_delay,
        exception_types=(TransportError,),
    )
    job_client = JobClient(http, client_config, retry_port=retry)
    monitor = JobMonitor(job_client, config=monitor_config)
    return ProcessingService(http, job_client, monitor)
