#!/usr/bin/env python3
"""
File Access Gate - warn (never block) on secrets-looking paths.
"""

from kanban_hook.safety import check_sensitive_path

from ._common import register_gate, HookResult, AgentType

_CLAUDE_FILE_TOOLS = ("Read", "Edit", "Write", "MultiEdit")


def file_path_of(agent_type: AgentType, payload: dict) -> str:
    if agent_type == AgentType.CLAUDE:
        if payload.get("tool_name") not in _CLAUDE_FILE_TOOLS:
            return ""
        tool_input = payload.get("tool_input") or {}
        if not isinstance(tool_input, dict):
            return ""
        path = tool_input.get("file_path") or tool_input.get("path") or ""
    else:
        path = payload.get("file_path") or payload.get("path") or ""
    return path if isinstance(path, str) else ""


# =============================================================================
# SENSITIVE FILE (Priority 50)
# =============================================================================


@register_gate("sensitive_file", r"claude:PreToolUse|cursor:beforeReadFile", priority=50)
def check_sensitive_file(agent_type: AgentType, raw_event: str, payload: dict) -> HookResult:
    """Warn when reading or editing .env, credentials, ssh or aws files."""
    warning = check_sensitive_path(file_path_of(agent_type, payload))
    if warning:
        return HookResult.warn(warning)
    return HookResult.allow()
