"""Tests for the memoir-process command line interface.

Parsing is checked through `build_parser`; command dispatch through `run`
with `create_service` replaced by a stub service.
"""

import pytest

from memoir import main as cli
from memoir.core.exceptions import NotFoundError
from memoir.core.models.session import ProcessingSession, SessionStatus


class StubService:
    """Async context manager standing in for ProcessingService."""

    def __init__(self, status=None, error=None):
        self.status = status
        self.error = error
        self.submitted = []
        self.closed = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.closed = True
        return False

    async def get_status(self, session_id):
        if self.error:
            raise self.error
        return self.status

    async def submit(self, audio_urls, title, description, preferences):
        self.submitted.append((audio_urls, title, description, preferences))
        return "sess-1"


@pytest.fixture
def parser():
    return cli.build_parser()


@pytest.fixture
def use_service(monkeypatch):
    def install(service):
        monkeypatch.setattr(cli, "create_service", lambda settings=None: service)
        return service
    return install


# --- Argument parsing ---

class TestParser:

    def test_submit_parses_preferences_object(self, parser):
        args = parser.parse_args([
            "submit", "https://a.test/1.webm", "--title", "T", "--description", "D",
            "--preferences", '{"generateFollowupQuestions": true}',
        ])
        assert args.audio_urls == ["https://a.test/1.webm"]
        assert args.preferences == {"generateFollowupQuestions": True}
        assert args.watch is False
        assert args.handler is cli.cmd_submit

    def test_preferences_default_to_empty(self, parser):
        args = parser.parse_args(["submit", "u", "--title", "T", "--description", "D"])
        assert args.preferences == {}

    @pytest.mark.parametrize("value", ["{not json", "[1, 2]", '"text"'])
    def test_bad_preferences_are_usage_errors(self, parser, value):
        with pytest.raises(SystemExit) as excinfo:
            parser.parse_args(["submit", "u", "--title", "T", "--description", "D", "--preferences", value])
        assert excinfo.value.code == 2

    def test_watch_poll_options(self, parser):
        args = parser.parse_args(["watch", "sess-1", "--interval", "2", "--max-duration", "30"])
        assert args.interval == 2.0
        assert args.max_duration == 30.0

    def test_command_is_required(self, parser):
        with pytest.raises(SystemExit):
            parser.parse_args([])


# --- Command dispatch ---

class TestRun:

    @pytest.mark.asyncio
    async def test_status_success_returns_zero(self, parser, use_service):
        service = use_service(StubService(status=ProcessingSession(
            session_id="sess-1", status=SessionStatus.processing, progress_percentage=30,
        )))

        code = await cli.run(parser.parse_args(["status", "sess-1"]))

        assert code == 0
        assert service.closed is True

    @pytest.mark.asyncio
    async def test_classified_error_returns_one(self, parser, use_service):
        service = use_service(StubService(error=NotFoundError("Session not found: sess-9")))

        code = await cli.run(parser.parse_args(["status", "sess-9"]))

        assert code == 1
        assert service.closed is True

    @pytest.mark.asyncio
    async def test_submit_forwards_preferences(self, parser, use_service):
        service = use_service(StubService())

        code = await cli.run(parser.parse_args([
            "submit", "u1", "u2", "--title", "T", "--description", "D", "--preferences", '{"a": 1}',
        ]))

        assert code == 0
        assert service.submitted == [(["u1", "u2"], "T", "D", {"a": 1})]
