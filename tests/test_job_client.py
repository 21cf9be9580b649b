"""Unit tests for JobClient.

Exercises the client against the real aiohttp adapter and tenacity retry
adapter with HTTP mocked by aioresponses. Retry sleeps are recorded instead
of awaited so the progressive backoff can be asserted without waiting.

Scenarios:
    1. Submission validation happens before any network call.
    2. Successful submission returns the session id; missing id is malformed.
    3. Non-2xx responses surface server `detail` messages and are not retried.
    4. 404 maps to NotFoundError for both status and results.
    5. Transport failures are retried with progressive backoff, then surface
       as NetworkError after the attempt budget is exhausted.
    6. Back-to-back status fetches normalize to equal sessions.
"""

import asyncio

import pytest
from aioresponses import aioresponses

from memoir.adapters.aiohttp_client_adapter import AioHttpClientAdapter
from memoir.adapters.retry_tenacity import TenacityRetryAdapter
from memoir.core.config import ClientConfig
from memoir.core.exceptions import (
    MalformedResponseError,
    NetworkError,
    NotFoundError,
    TransportError,
    ValidationError,
)
from memoir.core.managers.job_client import JobClient
from memoir.core.managers.status_normalizer import normalize
from memoir.core.models.session import TERMINAL_STATUSES
from memoir.core.models.submission import ProcessingRequest

BASE = "http://backend.test"
SUBMIT_URL = f"{BASE}/api/ai/process-from-firebase"
STATUS_URL = f"{BASE}/api/ai/status/sess-1"
RESULTS_URL = f"{BASE}/api/ai/results/sess-1"


# --- Test Fixtures ---

class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def config():
    return ClientConfig(base_url=BASE + "/", timeout=2.0, retry_attempts=3, retry_delay=1.0)


@pytest.fixture
async def http_client():
    async with AioHttpClientAdapter() as client:
        yield client


@pytest.fixture
def job_client(http_client, config, sleep):
    retry = TenacityRetryAdapter(
        attempts=config.retry_attempts,
        delay=config.retry_delay,
        exception_types=(TransportError,),
        sleep=sleep,
    )
    return JobClient(http_client, config, retry_port=retry)


@pytest.fixture
def request_body():
    return ProcessingRequest(
        audio_urls=["https://storage.test/a.webm", "https://storage.test/b.webm"],
        chapter_title="Childhood",
        chapter_description="Growing up by the sea",
        user_preferences={"generateFollowupQuestions": True},
    )


# --- Submission ---

class TestSubmitJob:
    """Test submit_job validation, payload and response handling."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "overrides, message",
        [
            ({"audio_urls": []}, "No audio URLs"),
            ({"audio_urls": ["  ", ""]}, "No audio URLs"),
            ({"chapter_title": "   "}, "title"),
            ({"chapter_description": ""}, "description"),
        ],
    )
    async def test_validation_fails_before_network(self, job_client, request_body, overrides, message):
        """Empty inputs raise ValidationError without issuing a request."""
        bad = ProcessingRequest(**{**request_body.model_dump(), **overrides})
        with aioresponses() as m:
            with pytest.raises(ValidationError) as excinfo:
                await job_client.submit_job(bad)
            assert message in excinfo.value.message
            assert len(m.requests) == 0

    @pytest.mark.asyncio
    async def test_returns_session_id_and_sends_camelcase_payload(self, job_client, request_body):
        with aioresponses() as m:
            m.post(SUBMIT_URL, payload={"sessionId": "sess-1"}, status=200)

            session_id = await job_client.submit_job(request_body)

            assert session_id == "sess-1"
            calls = list(m.requests.values())[0]
            sent = calls[0].kwargs["json"]
            assert sent["audioUrls"] == request_body.audio_urls
            assert sent["chapterTitle"] == "Childhood"
            assert sent["chapterDescription"] == "Growing up by the sea"
            assert sent["userPreferences"] == {"generateFollowupQuestions": True}

    @pytest.mark.asyncio
    async def test_missing_session_id_is_malformed(self, job_client, request_body):
        with aioresponses() as m:
            m.post(SUBMIT_URL, payload={"status": "accepted"}, status=200)
            with pytest.raises(MalformedResponseError):
                await job_client.submit_job(request_body)

    @pytest.mark.asyncio
    async def test_error_detail_is_surfaced_and_not_retried(self, job_client, request_body, sleep):
        with aioresponses() as m:
            m.post(SUBMIT_URL, payload={"detail": "Quota exceeded"}, status=429)
            with pytest.raises(NetworkError) as excinfo:
                await job_client.submit_job(request_body)

        assert excinfo.value.message == "Quota exceeded"
        assert excinfo.value.status_code == 429
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_error_without_detail_uses_generic_message(self, job_client, request_body):
        with aioresponses() as m:
            m.post(SUBMIT_URL, body="oops", status=500)
            with pytest.raises(NetworkError) as excinfo:
                await job_client.submit_job(request_body)
        assert "HTTP 500" in excinfo.value.message


# --- Status & results ---

class TestFetchStatusAndResults:
    """Test status/results classification."""

    @pytest.mark.asyncio
    async def test_fetch_status_returns_raw_payload(self, job_client):
        with aioresponses() as m:
            m.get(STATUS_URL, payload={"status": "processing", "progress_percentage": 10})
            raw = await job_client.fetch_status("sess-1")
        assert raw == {"status": "processing", "progress_percentage": 10}

    @pytest.mark.asyncio
    async def test_status_404_is_not_found(self, job_client):
        with aioresponses() as m:
            m.get(STATUS_URL, status=404, payload={"detail": "unknown session"})
            with pytest.raises(NotFoundError) as excinfo:
                await job_client.fetch_status("sess-1")
        assert excinfo.value.status_code == 404
        assert isinstance(excinfo.value, NetworkError)

    @pytest.mark.asyncio
    async def test_results_404_is_not_found(self, job_client):
        with aioresponses() as m:
            m.get(RESULTS_URL, status=404)
            with pytest.raises(NotFoundError) as excinfo:
                await job_client.fetch_results("sess-1")
        assert "Results not found" in excinfo.value.message

    @pytest.mark.asyncio
    async def test_non_object_status_is_malformed(self, job_client):
        with aioresponses() as m:
            m.get(STATUS_URL, payload=["not", "an", "object"])
            with pytest.raises(MalformedResponseError):
                await job_client.fetch_status("sess-1")

    @pytest.mark.asyncio
    async def test_blank_session_id_rejected(self, job_client):
        with pytest.raises(ValidationError):
            await job_client.fetch_status("  ")

    @pytest.mark.asyncio
    async def test_submit_then_status_is_non_terminal(self, job_client, request_body):
        with aioresponses() as m:
            m.post(SUBMIT_URL, payload={"sessionId": "sess-1"})
            m.get(STATUS_URL, payload={"status": "initializing", "currentStage": "Queued"})

            session_id = await job_client.submit_job(request_body)
            session = normalize(await job_client.fetch_status(session_id), session_id)

        assert session.status not in TERMINAL_STATUSES

    @pytest.mark.asyncio
    async def test_repeated_status_fetch_is_idempotent(self, job_client):
        payload = {
            "status": "processing",
            "current_stage": "Transcribing audio",
            "progress_percentage": 42,
            "errors": [],
        }
        with aioresponses() as m:
            m.get(STATUS_URL, payload=payload, repeat=True)
            first = normalize(await job_client.fetch_status("sess-1"), "sess-1")
            second = normalize(await job_client.fetch_status("sess-1"), "sess-1")
        assert first == second


# --- Transport retries ---

class TestTransportRetries:
    """Test request-level retry policy."""

    @pytest.mark.asyncio
    async def test_recovers_after_transient_timeout(self, job_client, sleep):
        with aioresponses() as m:
            m.get(STATUS_URL, exception=asyncio.TimeoutError())
            m.get(STATUS_URL, payload={"status": "processing"})
            raw = await job_client.fetch_status("sess-1")

        assert raw["status"] == "processing"
        assert sleep.delays == [1.0]

    @pytest.mark.asyncio
    async def test_exhausted_retries_raise_network_error(self, job_client, sleep):
        with aioresponses() as m:
            m.get(STATUS_URL, exception=asyncio.TimeoutError(), repeat=True)
            with pytest.raises(NetworkError) as excinfo:
                await job_client.fetch_status("sess-1")

        assert not isinstance(excinfo.value, TransportError)
        assert "after 3 attempts" in excinfo.value.message
        assert sleep.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_without_retry_port_single_attempt(self, http_client, config):
        client = JobClient(http_client, config)
        with aioresponses() as m:
            m.get(STATUS_URL, exception=asyncio.TimeoutError(), repeat=True)
            with pytest.raises(NetworkError) as excinfo:
                await client.fetch_status("sess-1")
        assert "after 1 attempts" in excinfo.value.message
