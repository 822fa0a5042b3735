#!/usr/bin/env python3
"""Tests for DeliveryClient and RetryingPoster.

The HTTP layer is a MagicMock passed as ``session``; nothing touches the
network.
"""

from unittest.mock import MagicMock

import pytest
import requests

from kanban_hook.delivery import (
    TOKEN_HEADER,
    DeliveryClient,
    DeliveryResult,
    RetryingPoster,
    events_path,
    run_path,
)
from kanban_hook.events import AgentType, normalize_event


def _response(status_code, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    return response


@pytest.fixture
def event():
    return normalize_event(
        AgentType.CLAUDE,
        "PreToolUse",
        {"tool_name": "Bash", "tool_input": {"command": "ls"}},
        run_id="run-7",
        ticket_id="T-42",
    )


class TestPaths:
    def test_run_id_is_escaped(self):
        assert events_path("a/b c") == "/v1/runs/a%2Fb%20c/events"
        assert run_path("run-7") == "/v1/runs/run-7"


class TestDeliveryClient:
    """One request per call, outcome reported as DeliveryResult."""

    def test_posts_event_with_token_header(self, make_config, event):
        # Arrange
        session = MagicMock()
        session.request.return_value = _response(201)
        client = DeliveryClient(make_config(), session=session)

        # Act
        result = client.post_event(event)

        # Assert
        assert result == DeliveryResult(ok=True, status_code=201)
        method, url = session.request.call_args.args
        kwargs = session.request.call_args.kwargs
        assert method == "POST"
        assert url == "http://127.0.0.1:7432/v1/runs/run-7/events"
        assert kwargs["headers"][TOKEN_HEADER] == "test-token"
        assert kwargs["json"] == event.request_body()
        assert kwargs["timeout"] == 5.0

    def test_non_2xx_is_failure(self, make_config, event):
        session = MagicMock()
        session.request.return_value = _response(500, "boom" * 100)
        client = DeliveryClient(make_config(), session=session)

        result = client.post_event(event)

        assert not result.ok
        assert result.status_code == 500
        assert result.message.startswith("HTTP 500: boom")
        assert len(result.message) <= len("HTTP 500: ") + 200

    def test_redirect_is_not_success(self, make_config, event):
        session = MagicMock()
        session.request.return_value = _response(302)

        result = DeliveryClient(make_config(), session=session).post_event(event)

        assert not result.ok

    def test_connection_error_is_reported_not_raised(self, make_config, event):
        session = MagicMock()
        session.request.side_effect = requests.exceptions.ConnectionError("refused")

        result = DeliveryClient(make_config(), session=session).post_event(event)

        assert not result.ok
        assert "refused" in result.message

    def test_timeout_is_reported_not_raised(self, make_config, event):
        session = MagicMock()
        session.request.side_effect = requests.exceptions.Timeout()

        result = DeliveryClient(make_config(timeout_seconds=2.5), session=session).post_event(event)

        assert not result.ok
        assert "timed out" in result.message

    def test_missing_token_makes_no_request(self, make_config, event):
        session = MagicMock()

        result = DeliveryClient(make_config(api_token=None), session=session).post_event(event)

        assert not result.ok
        session.request.assert_not_called()

    def test_patch_run(self, make_config):
        session = MagicMock()
        session.request.return_value = _response(200)
        client = DeliveryClient(make_config(), session=session)

        result = client.patch_run("run-7", {"status": "finished"})

        assert result.ok
        method, url = session.request.call_args.args
        assert method == "PATCH"
        assert url.endswith("/v1/runs/run-7")


class TestRetryingPoster:
    """Bounded attempts with linear backoff."""

    def _poster(self, make_config, session, **kwargs):
        sleeps = []
        client = DeliveryClient(make_config(), session=session)
        return RetryingPoster(client, sleep=sleeps.append, **kwargs), sleeps

    def test_first_success_stops(self, make_config, event):
        # Arrange
        session = MagicMock()
        session.request.return_value = _response(200)
        poster, sleeps = self._poster(make_config, session)

        # Act
        delivered = poster.post_event(event)

        # Assert
        assert delivered
        assert session.request.call_count == 1
        assert sleeps == []

    def test_all_attempts_fail_with_linear_backoff(self, make_config, event):
        # Arrange
        session = MagicMock()
        session.request.side_effect = requests.exceptions.ConnectionError("refused")
        poster, sleeps = self._poster(make_config, session)

        # Act
        delivered = poster.post_event(event)

        # Assert
        assert not delivered
        assert session.request.call_count == 3
        assert sleeps == [1.0, 2.0]

    def test_recovers_on_second_attempt(self, make_config, event):
        session = MagicMock()
        session.request.side_effect = [_response(503), _response(201)]
        poster, sleeps = self._poster(make_config, session)

        assert poster.post_event(event)
        assert session.request.call_count == 2
        assert sleeps == [1.0]

    def test_custom_retry_settings(self, make_config, event):
        session = MagicMock()
        session.request.return_value = _response(500)
        poster, sleeps = self._poster(make_config, session, max_retries=4, retry_delay_ms=250)

        assert not poster.post_event(event)
        assert session.request.call_count == 4
        assert sleeps == [0.25, 0.5, 0.75]

    def test_single_attempt_never_sleeps(self, make_config, event):
        session = MagicMock()
        session.request.return_value = _response(500)
        poster, sleeps = self._poster(make_config, session, max_retries=1)

        assert not poster.post_event(event)
        assert sleeps == []

    @pytest.mark.parametrize(
        "overrides,problem",
        [
            ({"run_id": None}, "missing run id"),
            ({"ticket_id": None}, "missing ticket id"),
        ],
    )
    def test_missing_identifiers_short_circuit(self, make_config, event, overrides, problem):
        # Arrange
        session = MagicMock()
        poster, sleeps = self._poster(make_config, session)
        incomplete = normalize_event(
            AgentType.CLAUDE,
            "Stop",
            {},
            run_id=overrides.get("run_id", "run-7"),
            ticket_id=overrides.get("ticket_id", "T-42"),
        )

        # Act
        delivered = poster.post_event(incomplete)

        # Assert
        assert not delivered
        assert poster.precondition_error(incomplete) == problem
        session.request.assert_not_called()
        assert sleeps == []

    def test_missing_token_short_circuits(self, make_config, event):
        session = MagicMock()
        sleeps = []
        poster = RetryingPoster(
            DeliveryClient(make_config(api_token=None), session=session), sleep=sleeps.append
        )

        assert not poster.post_event(event)
        session.request.assert_not_called()
        assert sleeps == []

    def test_from_config_uses_configured_retries(self, make_config):
        poster = RetryingPoster.from_config(make_config(max_retries=5, retry_delay_ms=10))

        assert poster.max_retries == 5
        assert poster.retry_delay_ms == 10
        assert poster.client.token == "test-token"
