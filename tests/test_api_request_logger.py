"""Tests for API request logger."""

from unittest.mock import MagicMock, patch

import pytest

from memoryscape.adapters.api_request_logger import (
    REDACTED,
    log_api_request,
    log_api_response,
    redact,
    should_log_requests,
)


class TestShouldLogRequests:
    """Tests for should_log_requests function."""

    def test_when_env_not_set_then_returns_false(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Given MEMORYSCAPE_LOG_REQUESTS not set, when checking, then returns False."""
        monkeypatch.delenv("MEMORYSCAPE_LOG_REQUESTS", raising=False)

        assert should_log_requests() is False

    @pytest.mark.parametrize("value", ["true", "True", "TRUE"])
    def test_when_env_set_to_true_then_returns_true(
        self, monkeypatch: pytest.MonkeyPatch, value: str
    ) -> None:
        """Given MEMORYSCAPE_LOG_REQUESTS=true in any case, when checking, then returns True."""
        monkeypatch.setenv("MEMORYSCAPE_LOG_REQUESTS", value)

        assert should_log_requests() is True

    def test_when_env_set_to_false_then_returns_false(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Given MEMORYSCAPE_LOG_REQUESTS=false, when checking, then returns False."""
        monkeypatch.setenv("MEMORYSCAPE_LOG_REQUESTS", "false")

        assert should_log_requests() is False


def test_redact_matches_keys_case_insensitively() -> None:
    """Given mixed-case sensitive keys, when redacting, then their values are hidden."""
    result = redact(
        {"Authorization": "Bearer abc", "Accept": "application/json"},
        frozenset({"authorization"}),
    )

    assert result == {"Authorization": REDACTED, "Accept": "application/json"}


class TestLogApiRequest:
    """Tests for log_api_request function."""

    @patch("memoryscape.adapters.api_request_logger.should_log_requests", return_value=False)
    @patch("memoryscape.adapters.api_request_logger.logger")
    def test_when_logging_disabled_then_does_not_log(
        self, mock_logger: MagicMock, _mock_should_log: MagicMock
    ) -> None:
        """Given logging disabled, when logging a request, then nothing is logged."""
        log_api_request("POST", "https://api.example.com", headers={"Authorization": "x"})
        log_api_response("POST", "https://api.example.com", 200, 0.1)

        mock_logger.info.assert_not_called()

    @patch("memoryscape.adapters.api_request_logger.should_log_requests", return_value=True)
    @patch("memoryscape.adapters.api_request_logger.logger")
    def test_when_logging_enabled_then_credentials_are_redacted(
        self, mock_logger: MagicMock, _mock_should_log: MagicMock
    ) -> None:
        """Given logging enabled, when logging a request, then secrets never reach the log."""
        log_api_request(
            "POST",
            "https://api.cloudinary.com/v1_1/demo/auto/upload",
            headers={"Authorization": "Bearer sk-live"},
            payload={"folder": "memoryscape/avatars", "api_key": "123", "signature": "abc"},
        )

        message = mock_logger.info.call_args[0][0]
        assert "API Request:" in message
        assert "memoryscape/avatars" in message
        assert "sk-live" not in message
        assert '"123"' not in message
        assert '"abc"' not in message
        assert message.count(REDACTED) == 3

    @patch("memoryscape.adapters.api_request_logger.should_log_requests", return_value=True)
    @patch("memoryscape.adapters.api_request_logger.logger")
    def test_response_logs_status_and_duration(
        self, mock_logger: MagicMock, _mock_should_log: MagicMock
    ) -> None:
        """Given logging enabled, when logging a response, then status and milliseconds are included."""
        log_api_response("POST", "https://api.openai.com/v1/chat/completions", 429, 0.25)

        message = mock_logger.info.call_args[0][0]
        assert "-> 429 in 250ms" in message
