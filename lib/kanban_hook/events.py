"""Event normalization: two runtime vocabularies, one canonical schema.

Each runtime gets a mapping table (raw lifecycle name -> canonical type) and
an extraction function (raw payload -> structured summary). ``AgentType``
selects which pair applies; there is no shared base class.

Canonical types:
    prompt_submitted, command_requested, command_executed, file_read,
    file_edited, run_started, run_stopped, error

Unknown raw names fall back to ``raw_name.lower()``. Nothing here raises.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable

logger = logging.getLogger(__name__)

# Captured file content is cut to this many characters.
MAX_CONTENT_CHARS = 500


class AgentType(str, Enum):
    """Agent runtime that invoked the hook. Values are the wire names."""

    CLAUDE = "claude"
    CURSOR = "cursor"

    @classmethod
    def parse(cls, value: str | None) -> "AgentType | None":
        if not isinstance(value, str) or not value:
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


# =============================================================================
# MAPPING TABLES
# =============================================================================

CLAUDE_EVENT_MAP = {
    "UserPromptSubmit": "prompt_submitted",
    "PreToolUse": "command_requested",
    "PostToolUse": "command_executed",
    "PostToolUseFailure": "error",
    "Stop": "run_stopped",
    "SessionStart": "run_started",
    "SessionEnd": "run_stopped",
}

CURSOR_EVENT_MAP = {
    "beforeSubmitPrompt": "prompt_submitted",
    "beforeShellExecution": "command_requested",
    "beforeMCPExecution": "command_requested",
    "afterShellExecution": "command_executed",
    "beforeReadFile": "file_read",
    "afterFileEdit": "file_edited",
    "stop": "run_stopped",
}

_EVENT_MAPS = {
    AgentType.CLAUDE: CLAUDE_EVENT_MAP,
    AgentType.CURSOR: CURSOR_EVENT_MAP,
}


# =============================================================================
# CANONICAL EVENT
# =============================================================================


def utc_timestamp(now: datetime | None = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a Z suffix."""
    moment = now or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class CanonicalEvent:
    """Normalized agent lifecycle event.

    ``timestamp`` and ``raw`` are fixed at normalization time and survive
    spooling and replay untouched.
    """

    run_id: str | None
    ticket_id: str | None
    agent_type: AgentType
    event_type: str
    raw: str
    structured: Any
    timestamp: str = field(default_factory=utc_timestamp)

    def request_body(self) -> dict[str, Any]:
        """Body for ``POST /v1/runs/{runId}/events``."""
        return {
            "eventType": self.event_type,
            "payload": {"raw": self.raw, "structured": self.structured},
            "timestamp": self.timestamp,
        }

    def to_dict(self) -> dict[str, Any]:
        """Full record, as written to the spool."""
        return {
            "runId": self.run_id,
            "ticketId": self.ticket_id,
            "agentType": self.agent_type.value,
            **self.request_body(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CanonicalEvent":
        """Rebuild an event from its spooled form.

        Raises:
            ValueError: if required fields are missing or malformed
        """
        if not isinstance(data, dict):
            raise ValueError("spooled event is not an object")
        payload = data.get("payload")
        event_type = data.get("eventType")
        timestamp = data.get("timestamp")
        if not isinstance(payload, dict) or not event_type or not timestamp:
            raise ValueError("spooled event is missing eventType, payload or timestamp")
        raw_agent = data.get("agentType")
        agent_type = AgentType.parse(raw_agent)
        if agent_type is None:
            if raw_agent is not None:
                raise ValueError(f"spooled event has unknown agentType {raw_agent!r}")
            agent_type = AgentType.CURSOR
        return cls(
            run_id=data.get("runId"),
            ticket_id=data.get("ticketId"),
            agent_type=agent_type,
            event_type=str(event_type),
            raw=payload.get("raw") or "",
            structured=payload.get("structured"),
            timestamp=str(timestamp),
        )


# =============================================================================
# HELPERS
# =============================================================================


def _cap(value: Any, limit: int = MAX_CONTENT_CHARS) -> Any:
    """Truncate strings to ``limit`` characters; leave other values alone."""
    if isinstance(value, str) and len(value) > limit:
        return value[:limit]
    return value


def _drop_none(data: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


def serialize_raw(payload: Any) -> str:
    return json.dumps(payload, default=str, ensure_ascii=False)


# =============================================================================
# CLAUDE EXTRACTION
# =============================================================================


def _claude_tool_data(payload: dict[str, Any]) -> dict[str, Any]:
    tool = payload.get("tool_name") or ""
    tool_input = payload.get("tool_input") or {}
    if not isinstance(tool_input, dict):
        return {"tool": tool, "input": tool_input}

    if tool == "Bash":
        return _drop_none(
            {
                "tool": "bash",
                "command": tool_input.get("command"),
                "workingDirectory": payload.get("cwd"),
                "timeout": tool_input.get("timeout"),
            }
        )
    if tool == "Read":
        return _drop_none({"tool": "read", "filePath": tool_input.get("file_path")})
    if tool in ("Edit", "Write", "MultiEdit"):
        return _drop_none(
            {
                "tool": tool.lower(),
                "filePath": tool_input.get("file_path"),
                "oldContent": _cap(tool_input.get("old_string")),
                "newContent": _cap(tool_input.get("new_string", tool_input.get("content"))),
            }
        )
    return {"tool": tool, "input": tool_input}


def extract_claude_data(raw_event: str, payload: dict[str, Any]) -> Any:
    if raw_event in ("PreToolUse", "PostToolUse"):
        return _claude_tool_data(payload)
    if raw_event == "PostToolUseFailure":
        return {"tool": payload.get("tool_name") or "", "error": payload.get("error")}
    if raw_event == "UserPromptSubmit":
        return _drop_none({"prompt": payload.get("prompt"), "sessionId": payload.get("session_id")})
    if raw_event == "Stop":
        return _drop_none(
            {"reason": payload.get("stop_reason"), "transcriptPath": payload.get("transcript_path")}
        )
    if raw_event == "SessionEnd":
        return _drop_none(
            {"reason": payload.get("reason"), "transcriptPath": payload.get("transcript_path")}
        )
    return payload


# =============================================================================
# CURSOR EXTRACTION
# =============================================================================


def _cursor_edits(edits: Any) -> Any:
    if not isinstance(edits, list):
        return None
    summarized = []
    for edit in edits:
        if isinstance(edit, dict):
            summarized.append(
                _drop_none(
                    {
                        "oldContent": _cap(edit.get("old_string")),
                        "newContent": _cap(edit.get("new_string")),
                    }
                )
            )
    return summarized


def extract_cursor_data(raw_event: str, payload: dict[str, Any]) -> Any:
    if raw_event in ("beforeShellExecution", "afterShellExecution"):
        return _drop_none(
            {
                "tool": "bash",
                "command": payload.get("command"),
                "workingDirectory": payload.get("cwd"),
                "output": _cap(payload.get("output")),
            }
        )
    if raw_event == "beforeReadFile":
        return _drop_none({"tool": "read", "filePath": payload.get("file_path", payload.get("path"))})
    if raw_event == "afterFileEdit":
        return _drop_none(
            {
                "tool": "edit",
                "filePath": payload.get("file_path", payload.get("path")),
                "oldContent": _cap(payload.get("oldContent")),
                "newContent": _cap(payload.get("newContent")),
                "edits": _cursor_edits(payload.get("edits")),
            }
        )
    if raw_event == "stop":
        return _drop_none({"status": payload.get("status"), "reason": payload.get("reason")})
    return payload


_EXTRACTORS: dict[AgentType, Callable[[str, dict[str, Any]], Any]] = {
    AgentType.CLAUDE: extract_claude_data,
    AgentType.CURSOR: extract_cursor_data,
}


# =============================================================================
# PUBLIC API
# =============================================================================


def map_event_type(agent_type: AgentType, raw_event: str) -> str:
    """Translate a runtime-specific lifecycle name to the canonical type."""
    table = _EVENT_MAPS.get(agent_type, {})
    return table.get(raw_event) or raw_event.lower()


def extract_structured(agent_type: AgentType, raw_event: str, payload: Any) -> Any:
    """Runtime- and event-specific summary of ``payload``.

    Unknown shapes (non-dict payloads, extractor failures) pass the payload
    through unchanged.
    """
    if not isinstance(payload, dict):
        return payload
    extractor = _EXTRACTORS.get(agent_type)
    if extractor is None:
        return payload
    try:
        return extractor(raw_event, payload)
    except Exception as e:
        logger.debug("extraction failed for %s/%s: %s", agent_type.value, raw_event, e)
        return payload


def normalize_event(
    agent_type: AgentType,
    raw_event: str,
    payload: Any,
    *,
    run_id: str | None = None,
    ticket_id: str | None = None,
    raw: str | None = None,
    now: datetime | None = None,
) -> CanonicalEvent:
    """Build the canonical event for one hook invocation.

    Args:
        agent_type: runtime that called the hook
        raw_event: lifecycle name as the runtime spelled it
        payload: parsed stdin payload
        run_id, ticket_id: identifiers from the environment
        raw: verbatim stdin text; serialized from ``payload`` when omitted
        now: capture time override
    """
    if raw is None:
        try:
            raw = serialize_raw(payload)
        except (TypeError, ValueError):
            raw = str(payload)
    return CanonicalEvent(
        run_id=run_id,
        ticket_id=ticket_id,
        agent_type=agent_type,
        event_type=map_event_type(agent_type, raw_event or ""),
        raw=raw,
        structured=extract_structured(agent_type, raw_event or "", payload),
        timestamp=utc_timestamp(now),
    )
