"""Guidance text injected into the agent on prompt submission."""

from __future__ import annotations

from .config import HookConfig

_GUIDELINES = """\
### Guidelines:
1. Focus on completing the described task
2. Make incremental changes and verify they work
3. Commit your changes with descriptive messages
4. If blocked, document the issue clearly

### Important:
- Your actions are being tracked and will appear in the ticket timeline
- Avoid accessing sensitive files (.env, credentials, etc.)
"""


def build_prompt_context(config: HookConfig) -> str:
    """Context block for the current ticket, or "" when no ticket is set."""
    if not config.ticket_id:
        return ""
    if config.run_id:
        header = f"You are working on ticket {config.ticket_id} (run {config.run_id})."
    else:
        header = f"You are working on ticket {config.ticket_id}."
    return f"## Agent Kanban Context\n\n{header}\n\n{_GUIDELINES}"
