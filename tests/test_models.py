"""Unit tests for request models and configuration."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from memoir.core.config import ClientConfig, MonitorConfig
from memoir.core.exceptions import ValidationError
from memoir.core.models.submission import ProcessingRequest
from memoir.core.settings import MemoirSettings


class TestProcessingRequest:

    def test_blank_urls_are_dropped(self):
        request = ProcessingRequest(audio_urls=["", "https://a.test/1.webm", "  "])
        assert request.audio_urls == ["https://a.test/1.webm"]

    def test_valid_request_passes(self):
        ProcessingRequest(audio_urls=["u"], chapter_title="T", chapter_description="D").validate_inputs()

    def test_url_check_comes_first(self):
        with pytest.raises(ValidationError) as excinfo:
            ProcessingRequest().validate_inputs()
        assert excinfo.value.message == "No audio URLs provided"

    def test_payload_uses_camel_case(self):
        payload = ProcessingRequest(audio_urls=["u"], chapter_title="T", chapter_description="D").to_payload()
        assert payload == {"audioUrls": ["u"], "chapterTitle": "T", "chapterDescription": "D", "userPreferences": {}}


class TestConfig:

    def test_client_defaults(self):
        config = ClientConfig()
        assert config.timeout == 30.0
        assert config.retry_attempts == 3
        assert config.retry_delay == 1.0

    def test_monitor_defaults(self):
        config = MonitorConfig()
        assert config.poll_interval == 5.0
        assert config.max_duration == 600.0
        assert config.max_consecutive_errors == 5

    def test_root_url_strips_slash(self):
        assert ClientConfig(base_url="http://x.test/").root_url == "http://x.test"

    @pytest.mark.parametrize("kwargs", [{"retry_attempts": 0}, {"timeout": 0}, {"retry_delay": -1}, {"bogus": 1}])
    def test_client_bounds(self, kwargs):
        with pytest.raises(PydanticValidationError):
            ClientConfig(**kwargs)

    def test_configs_are_frozen(self):
        config = MonitorConfig()
        with pytest.raises(PydanticValidationError):
            config.poll_interval = 1.0

    def test_from_settings(self, monkeypatch):
        monkeypatch.setenv("MEMOIR_BACKEND_URL", "http://env.test/")
        monkeypatch.setenv("MEMOIR_POLL_INTERVAL", "2.5")
        settings = MemoirSettings(_env_file=None)

        assert ClientConfig.from_app_settings(settings).base_url == "http://env.test"
        assert MonitorConfig.from_app_settings(settings).poll_interval == 2.5
