"""JobClient: single logical requests against the AI processing backend.

Responsibilities:
1. Validate submission inputs locally before any network call.
2. Bound every attempt by the configured per-request timeout.
3. Retry transport failures (timeouts, connection errors) with progressive
   backoff; never retry HTTP error statuses.
4. Classify non-2xx responses (404 -> NotFoundError, others -> NetworkError),
   using the server-supplied `detail` message when present.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from memoir.core.config import ClientConfig
from memoir.core.exceptions import (
    MalformedResponseError,
    NetworkError,
    NotFoundError,
    TransportError,
    ValidationError,
)
from memoir.core.interfaces.http_client import HttpClientPort
from memoir.core.interfaces.job_client import JobClientPort
from memoir.core.interfaces.retry import RetryPort
from memoir.core.models.submission import ProcessingRequest
from memoir.core.settings import logger

SUBMIT_PATH = "/api/ai/process-from-firebase"
STATUS_PATH = "/api/ai/status/{session_id}"
RESULTS_PATH = "/api/ai/results/{session_id}"


class JobClient(JobClientPort):
    """Stateless apart from immutable configuration; safe for concurrent use."""

    def __init__(
        self,
        http_client: HttpClientPort,
        config: ClientConfig,
        retry_port: Optional[RetryPort] = None,
    ) -> None:
        self._http = http_client
        self.config = config
        self._retry = retry_port

    # ---------------- Public operations -----------------
    async def submit_job(self, request: ProcessingRequest) -> str:
        request.validate_inputs()

        url = self.config.root_url + SUBMIT_PATH
        logger.debug(
            f"[client:submit] POST url={url} audio_files={len(request.audio_urls)} "
            f"title={request.chapter_title!r}"
        )
        resp = await self._send("POST", url, json=request.to_payload())

        status = resp.get("status")
        body = resp.get("body")
        if not self._is_success(status):
            raise NetworkError(
                self._error_detail(body) or f"HTTP {status}: Processing request failed",
                status_code=status,
            )

        session_id = body.get("sessionId") if isinstance(body, dict) else None
        if not session_id:
            raise MalformedResponseError("Invalid response: missing session ID", status_code=status)

        logger.info("Started AI processing with session ID: %s", session_id)
        return str(session_id)

    async def fetch_status(self, session_id: str) -> Dict[str, Any]:
        self._require_session_id(session_id)
        url = self.config.root_url + STATUS_PATH.format(session_id=session_id)
        resp = await self._send("GET", url)
        return self._classify(resp, session_id, what="processing status", missing=f"Session not found: {session_id}")

    async def fetch_results(self, session_id: str) -> Dict[str, Any]:
        self._require_session_id(session_id)
        url = self.config.root_url + RESULTS_PATH.format(session_id=session_id)
        resp = await self._send("GET", url)
        return self._classify(
            resp, session_id, what="processing results", missing=f"Results not found for session: {session_id}"
        )

    # ---------------- Transport with retry -----------------
    async def _send(self, method: str, url: str, json: Dict[str, Any] | None = None) -> Dict[str, Any]:
        """Issue one logical request, retrying transport failures only."""

        async def attempt() -> Dict[str, Any]:
            if method == "POST":
                return await self._http.post(url, json=json, timeout=self.config.timeout)
            return await self._http.get(url, timeout=self.config.timeout)

        try:
            if self._retry:
                return await self._retry.execute(
                    attempt,
                    attempts=self.config.retry_attempts,
                    delay=self.config.retry_delay,
                    exception_types=(TransportError,),
                )
            return await attempt()
        except TransportError as exc:
            attempts = self.config.retry_attempts if self._retry else 1
            logger.debug(f"[client:send] transport retries exhausted method={method} url={url} err={exc}")
            raise NetworkError(
                f"Network request failed after {attempts} attempts: {exc.message}",
                status_code=exc.status_code,
                diagnostic=exc.diagnostic,
            ) from exc

    # ---------------- Response classification -----------------
    def _classify(self, resp: Dict[str, Any], session_id: str, what: str, missing: str) -> Dict[str, Any]:
        status = resp.get("status")
        body = resp.get("body")

        if status == 404:
            raise NotFoundError(missing, session_id=session_id, diagnostic=self._error_detail(body))

        if not self._is_success(status):
            raise NetworkError(
                self._error_detail(body) or f"HTTP {status}: Failed to get {what}",
                status_code=status,
                session_id=session_id,
            )

        if not isinstance(body, dict):
            raise MalformedResponseError(
                f"Invalid {what} payload for session {session_id}: expected JSON object, "
                f"got {type(body).__name__}",
                status_code=status,
                session_id=session_id,
            )
        return body

    @staticmethod
    def _is_success(status: Any) -> bool:
        return isinstance(status, int) and 200 <= status < 300

    @staticmethod
    def _error_detail(body: Any) -> Optional[str]:
        if isinstance(body, dict) and body.get("detail"):
            return str(body["detail"])
        return None

    @staticmethod
    def _require_session_id(session_id: str) -> None:
        if not session_id or not str(session_id).strip():
            raise ValidationError("Session ID is required")
