"""
Tests for retrying HTTP requests with exponential backoff
"""

import json

import httpx
import pytest

from essay_grader.services.http_retry import RetryState, fetch_with_retry

URL = "https://example.test/models/m:generateContent"


class SleepRecorder:
    """Records requested delays instead of sleeping."""

    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


def _client(responses):
    """AsyncClient whose transport answers from the given list in order."""
    calls = []

    def handler(request):
        calls.append(request)
        outcome = responses[len(calls) - 1]
        if isinstance(outcome, Exception):
            raise outcome
        return httpx.Response(outcome)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler)), calls


class TestRetryState:
    """Test the per-attempt retry state."""

    def test_next_decrements_retries_doubles_delay(self):
        state = RetryState(3, 1.0).next()
        assert state == RetryState(2, 2.0)

    def test_can_retry(self):
        assert RetryState(1, 1.0).can_retry
        assert not RetryState(0, 1.0).can_retry


class TestFetchWithRetry:
    """Test fetch_with_retry."""

    @pytest.mark.asyncio
    async def test_success_without_retry(self):
        client, calls = _client([200])
        sleep = SleepRecorder()
        response = await fetch_with_retry(client, "POST", URL, sleep=sleep)

        assert response.status_code == 200
        assert len(calls) == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_busy_then_success(self):
        client, calls = _client([503, 503, 200])
        sleep = SleepRecorder()
        response = await fetch_with_retry(client, "POST", URL, backoff=1.0, sleep=sleep)

        assert response.status_code == 200
        assert len(calls) == 3
        assert len(sleep.delays) == 2
        assert sleep.delays[1] == sleep.delays[0] * 2

    @pytest.mark.asyncio
    async def test_rate_limited_is_retried(self):
        client, calls = _client([429, 200])
        response = await fetch_with_retry(client, "GET", URL, sleep=SleepRecorder())
        assert response.status_code == 200
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_exhausted_returns_last_response(self):
        client, calls = _client([503, 503, 503, 503])
        sleep = SleepRecorder()
        response = await fetch_with_retry(client, "POST", URL, retries=3, sleep=sleep)

        assert response.status_code == 503
        assert len(calls) == 4
        assert sleep.delays == [1.0, 2.0, 4.0]

    @pytest.mark.asyncio
    async def test_permanent_error_not_retried(self):
        client, calls = _client([404])
        sleep = SleepRecorder()
        response = await fetch_with_retry(client, "POST", URL, sleep=sleep)

        assert response.status_code == 404
        assert len(calls) == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_network_error_retried(self):
        client, calls = _client([httpx.ConnectError("refused"), 200])
        sleep = SleepRecorder()
        response = await fetch_with_retry(client, "POST", URL, sleep=sleep)

        assert response.status_code == 200
        assert sleep.delays == [1.0]

    @pytest.mark.asyncio
    async def test_network_error_reraised_when_exhausted(self):
        client, calls = _client([httpx.ConnectError("refused")] * 2)
        with pytest.raises(httpx.ConnectError):
            await fetch_with_retry(client, "POST", URL, retries=1, sleep=SleepRecorder())
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_request_kwargs_forwarded(self):
        client, calls = _client([200])
        await fetch_with_retry(
            client, "POST", URL, sleep=SleepRecorder(), params={"key": "abc"}, json={"a": 1}
        )
        assert calls[0].url.params["key"] == "abc"
        assert json.loads(calls[0].content) == {"a": 1}
