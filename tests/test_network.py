"""Unit tests for Horizon request timeouts and retries."""

from unittest.mock import Mock, patch

import pytest
from requests.exceptions import ConnectionError, HTTPError, Timeout

from stellar_multisig.shared.network import (
    DEFAULT_RETRY_CONFIG,
    DEFAULT_TIMEOUT_CONFIG,
    NetworkClient,
    NetworkError,
    NetworkErrorType,
    RetryConfig,
    TimeoutConfig,
    classify_error,
    create_network_error,
    should_retry,
)

HORIZON = "https://horizon-testnet.stellar.org"


def _ok(body):
    response = Mock()
    response.status_code = 200
    response.json.return_value = body
    return response


def _http_error(status_code, text="error"):
    response = Mock()
    response.status_code = status_code
    response.text = text
    return HTTPError(response=response)


class TestConfigs:
    def test_timeout_defaults(self):
        config = TimeoutConfig()
        assert config.request_timeout == (5.0, 15.0)

    def test_retry_delay_growth_is_capped(self):
        config = RetryConfig(base_delay=1.0, exponential_base=2.0, max_delay=5.0)
        assert [config.calculate_delay(n) for n in range(4)] == [1.0, 2.0, 4.0, 5.0]

    def test_retryable_status_codes(self):
        assert RetryConfig().retryable_status_codes == {408, 429, 500, 502, 503, 504}


class TestErrorHandling:
    @pytest.mark.parametrize(
        "error,expected",
        [
            (Timeout("slow"), NetworkErrorType.TIMEOUT),
            (ConnectionError("refused"), NetworkErrorType.CONNECTION_ERROR),
            (_http_error(500), NetworkErrorType.HTTP_ERROR),
            (ValueError("bad"), NetworkErrorType.UNKNOWN),
        ],
    )
    def test_classify_error(self, error, expected):
        assert classify_error(error) == expected

    def test_timeout_message_names_horizon(self):
        error = create_network_error(Timeout("slow"), HORIZON, "Fetch account")

        assert error.message.startswith("Fetch account: Connection timeout")
        assert HORIZON in error.message

    def test_http_error_keeps_response(self):
        error = create_network_error(_http_error(400, '{"title": "bad"}'), HORIZON)

        assert error.status_code == 400
        assert error.response_text == '{"title": "bad"}'
        assert "400" in str(error)

    @pytest.mark.parametrize("status_code", [429, 503, 504])
    def test_retries_transient_status(self, status_code):
        assert should_retry(_http_error(status_code), RetryConfig()) is True

    @pytest.mark.parametrize("status_code", [400, 404])
    def test_does_not_retry_client_errors(self, status_code):
        assert should_retry(_http_error(status_code), RetryConfig()) is False


class TestNetworkClient:
    def test_defaults(self):
        client = NetworkClient(HORIZON + "/")

        assert client.base_url == HORIZON
        assert client.timeout_config == DEFAULT_TIMEOUT_CONFIG
        assert client.retry_config == DEFAULT_RETRY_CONFIG

    def test_get_optional_success(self):
        client = NetworkClient(HORIZON, timeout_config=TimeoutConfig(2.0, 4.0))

        with patch("requests.get") as mock_get:
            mock_get.return_value = _ok({"id": "GABC"})

            assert client.get_optional("/accounts/GABC") == {"id": "GABC"}
            assert mock_get.call_args[0][0] == f"{HORIZON}/accounts/GABC"
            assert mock_get.call_args[1]["timeout"] == (2.0, 4.0)

    def test_get_optional_returns_none_on_404(self):
        client = NetworkClient(HORIZON)

        with patch("requests.get") as mock_get:
            response = Mock()
            response.status_code = 404
            mock_get.return_value = response

            assert client.get_optional("/accounts/GABC") is None

    def test_retries_then_succeeds(self):
        retries = []
        client = NetworkClient(
            HORIZON,
            retry_config=RetryConfig(max_retries=2, base_delay=0.01),
            on_retry=lambda attempt, error, delay: retries.append(attempt),
        )

        with patch("requests.get") as mock_get:
            mock_get.side_effect = [Timeout("slow"), Timeout("slow"), _ok({"ok": True})]

            assert client.get_optional("/fee_stats") == {"ok": True}

        assert retries == [1, 2]

    def test_gives_up_after_max_retries(self):
        client = NetworkClient(
            HORIZON, retry_config=RetryConfig(max_retries=1, base_delay=0.01)
        )

        with patch("requests.get") as mock_get:
            mock_get.side_effect = ConnectionError("refused")

            with pytest.raises(NetworkError) as exc_info:
                client.get_optional("/accounts/GABC", context="Fetch account")

        assert exc_info.value.error_type == NetworkErrorType.CONNECTION_ERROR
        assert mock_get.call_count == 2

    def test_post_does_not_retry_client_error(self):
        client = NetworkClient(
            HORIZON, retry_config=RetryConfig(max_retries=3, base_delay=0.01)
        )

        with patch("requests.post") as mock_post:
            response = Mock()
            response.status_code = 400
            response.raise_for_status.side_effect = _http_error(400)
            mock_post.return_value = response

            with pytest.raises(NetworkError) as exc_info:
                client.post("/transactions", data={"tx": "AAAA"})

        assert exc_info.value.error_type == NetworkErrorType.HTTP_ERROR
        assert mock_post.call_count == 1
