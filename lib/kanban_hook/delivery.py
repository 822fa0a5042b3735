"""HTTP delivery to the Agent Kanban tracking service.

DeliveryClient makes exactly one request and reports the outcome.
RetryingPoster wraps it with bounded linear backoff for event submission.

Endpoints:
    POST  /v1/runs/{runId}/events   submit a canonical event
    PATCH /v1/runs/{runId}          update run status
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable
from urllib.parse import quote

import requests

from .config import HookConfig
from .events import CanonicalEvent

logger = logging.getLogger(__name__)

TOKEN_HEADER = "X-AgentKanban-Token"
USER_AGENT = "agent-kanban-hook/1.0"


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of one request. ``ok`` is True only for a 2xx response."""

    ok: bool
    message: str = ""
    status_code: int | None = None


def events_path(run_id: str) -> str:
    return f"/v1/runs/{quote(run_id, safe='')}/events"


def run_path(run_id: str) -> str:
    return f"/v1/runs/{quote(run_id, safe='')}"


# =============================================================================
# SINGLE ATTEMPT
# =============================================================================


class DeliveryClient:
    """One network attempt per call, fixed timeout, no retries."""

    def __init__(self, config: HookConfig, session: requests.Session | None = None):
        self.base_url = config.api_url.rstrip("/")
        self.token = config.api_token
        self.timeout = config.timeout_seconds
        self._http = session or requests

    def send(self, method: str, path: str, body: dict[str, Any]) -> DeliveryResult:
        """Send ``body`` as JSON. Never raises."""
        if not self.token:
            return DeliveryResult(ok=False, message="missing API token")

        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
            TOKEN_HEADER: self.token,
        }
        url = f"{self.base_url}{path}"
        try:
            response = self._http.request(
                method,
                url,
                json=body,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout:
            return DeliveryResult(ok=False, message=f"request timed out after {self.timeout}s")
        except requests.exceptions.RequestException as e:
            return DeliveryResult(ok=False, message=f"transport error: {e}")

        if 200 <= response.status_code < 300:
            return DeliveryResult(ok=True, status_code=response.status_code)
        text = (response.text or "")[:200]
        return DeliveryResult(
            ok=False,
            message=f"HTTP {response.status_code}: {text}",
            status_code=response.status_code,
        )

    def post_event(self, event: CanonicalEvent) -> DeliveryResult:
        return self.send("POST", events_path(event.run_id or ""), event.request_body())

    def patch_run(self, run_id: str, body: dict[str, Any]) -> DeliveryResult:
        return self.send("PATCH", run_path(run_id), body)


# =============================================================================
# BOUNDED RETRY
# =============================================================================


class RetryingPoster:
    """Submit events with up to ``max_retries`` attempts.

    After failed attempt ``n`` (0-based) it sleeps ``(n + 1) * base_delay``,
    except after the last attempt. With the defaults that is 1s then 2s.
    """

    def __init__(
        self,
        client: DeliveryClient,
        max_retries: int = 3,
        retry_delay_ms: int = 1000,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client
        self.max_retries = max(1, max_retries)
        self.retry_delay_ms = max(0, retry_delay_ms)
        self._sleep = sleep

    @classmethod
    def from_config(cls, config: HookConfig, **kwargs) -> "RetryingPoster":
        return cls(
            DeliveryClient(config),
            max_retries=config.max_retries,
            retry_delay_ms=config.retry_delay_ms,
            **kwargs,
        )

    def precondition_error(self, event: CanonicalEvent) -> str | None:
        """Conditions retrying cannot fix."""
        if not event.run_id:
            return "missing run id"
        if not event.ticket_id:
            return "missing ticket id"
        if not self.client.token:
            return "missing API token"
        return None

    def post_event(self, event: CanonicalEvent) -> bool:
        """Deliver ``event``; True on the first 2xx, False once attempts run out."""
        problem = self.precondition_error(event)
        if problem:
            logger.warning("not delivering %s event: %s", event.event_type, problem)
            return False

        for attempt in range(self.max_retries):
            result = self.client.post_event(event)
            if result.ok:
                if attempt:
                    logger.debug("delivered %s after %d retries", event.event_type, attempt)
                return True
            logger.debug(
                "delivery attempt %d/%d for %s failed: %s",
                attempt + 1,
                self.max_retries,
                event.event_type,
                result.message,
            )
            if attempt < self.max_retries - 1:
                self._sleep(self.retry_delay_ms * (attempt + 1) / 1000.0)

        logger.warning("giving up on %s event after %d attempts", event.event_type, self.max_retries)
        return False
