#!/usr/bin/env python3
"""
Shell Command Gate - block destructive commands before they run.

Covers Claude Bash tool calls and Cursor shell executions. The decision
comes from kanban_hook.safety.evaluate, so it never depends on the network.
"""

from kanban_hook.safety import evaluate

from ._common import register_gate, HookResult, AgentType


def command_text(agent_type: AgentType, payload: dict) -> str:
    """Pull the shell command out of a pre-execution payload ("" if none)."""
    if agent_type == AgentType.CLAUDE:
        if payload.get("tool_name") != "Bash":
            return ""
        tool_input = payload.get("tool_input") or {}
        command = tool_input.get("command", "") if isinstance(tool_input, dict) else ""
    else:
        command = payload.get("command", "")
    return command if isinstance(command, str) else ""


# =============================================================================
# DANGEROUS COMMAND (Priority 10)
# =============================================================================


@register_gate(
    "dangerous_command",
    r"claude:PreToolUse|cursor:beforeShellExecution",
    priority=10,
)
def check_dangerous_command(agent_type: AgentType, raw_event: str, payload: dict) -> HookResult:
    """Deny commands matching a danger pattern (rm -rf /, force push, ...)."""
    command = command_text(agent_type, payload)
    if not command:
        return HookResult.allow()

    verdict = evaluate(command)
    if verdict.blocked:
        return HookResult.deny(
            f"{verdict.message}\nCommand: {command}\n"
            "Please use a safer alternative.",
            category=verdict.category or "",
        )
    return HookResult.allow()
