"""Terminal run status derived from stop-type lifecycle events."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .delivery import DeliveryClient
from .events import AgentType

logger = logging.getLogger(__name__)

FINISHED = "finished"
ERROR = "error"
ABORTED = "aborted"

# Raw names that end a run and trigger a status update.
STOP_EVENTS = {
    AgentType.CLAUDE: frozenset({"Stop"}),
    AgentType.CURSOR: frozenset({"stop"}),
}

_SUMMARY_FINISHED = "Completed successfully."
_SUMMARY_CANCELLED = "Cancelled by user."

_CLAUDE_FINISHED = frozenset({"", "end_turn", "stop_sequence"})
_CLAUDE_ERRORS = frozenset({"error", "tool_error"})
_CLAUDE_CANCELLED = frozenset({"user_cancelled", "interrupt"})

_CURSOR_FINISHED = frozenset({"", "completed"})
_CURSOR_ERRORS = frozenset({"error"})
_CURSOR_CANCELLED = frozenset({"aborted", "cancelled"})


@dataclass(frozen=True)
class RunStatusUpdate:
    status: str
    exit_code: int
    summary: str

    def request_body(self) -> dict[str, Any]:
        """Body for ``PATCH /v1/runs/{runId}``."""
        return {"status": self.status, "exitCode": self.exit_code, "summaryMd": self.summary}


def is_stop_event(agent_type: AgentType, raw_event: str) -> bool:
    return raw_event in STOP_EVENTS.get(agent_type, frozenset()) or raw_event.lower() == "stop"


def _classify(reason: str, finished: frozenset, errors: frozenset, cancelled: frozenset) -> RunStatusUpdate:
    if reason in finished:
        return RunStatusUpdate(FINISHED, 0, _SUMMARY_FINISHED)
    if reason in errors:
        return RunStatusUpdate(ERROR, 1, f"Error: {reason}")
    if reason in cancelled:
        return RunStatusUpdate(ABORTED, 130, _SUMMARY_CANCELLED)
    if reason == "max_tokens":
        return RunStatusUpdate(FINISHED, 0, "Stopped after reaching the token limit.")
    return RunStatusUpdate(FINISHED, 0, f"Stopped: {reason}")


def derive_run_status(agent_type: AgentType, payload: Any) -> RunStatusUpdate:
    """Map a runtime-specific stop reason to status, exit code and summary.

    Claude reports ``stop_reason``; Cursor reports ``status``.
    """
    data = payload if isinstance(payload, dict) else {}
    if agent_type == AgentType.CURSOR:
        reason = str(data.get("status") or "").strip().lower()
        return _classify(reason, _CURSOR_FINISHED, _CURSOR_ERRORS, _CURSOR_CANCELLED)
    reason = str(data.get("stop_reason") or "").strip().lower()
    return _classify(reason, _CLAUDE_FINISHED, _CLAUDE_ERRORS, _CLAUDE_CANCELLED)


def report_run_status(
    client: DeliveryClient,
    run_id: str | None,
    update: RunStatusUpdate,
) -> bool:
    """Send ``update`` as a single PATCH. Failures are logged, not raised."""
    if not run_id:
        logger.warning("not reporting run status %s: missing run id", update.status)
        return False
    result = client.patch_run(run_id, update.request_body())
    if not result.ok:
        logger.warning("failed to update run status: %s", result.message)
    return result.ok
