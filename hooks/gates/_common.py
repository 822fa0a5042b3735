#!/usr/bin/env python3
"""
Common infrastructure for gate modules.

Provides the shared GATES list and the register_gate decorator that gate
modules use.
"""

import sys
from pathlib import Path

# Ensure hooks/ and lib/ are importable when run as a script
_hooks_dir = Path(__file__).resolve().parent.parent
_lib_dir = _hooks_dir.parent / "lib"
for p in [str(_hooks_dir), str(_lib_dir)]:
    if p not in sys.path:
        sys.path.insert(0, p)

import os  # noqa: E402
from typing import Callable, Optional  # noqa: E402

from _hook_result import HookResult  # noqa: E402
from kanban_hook.events import AgentType  # noqa: E402

# Shared gate registry: (name, matcher, check_function, priority)
# matcher: None = every gated event, str = regex over "<agent>:<raw event>"
GATES: list[tuple[str, Optional[str], Callable, int]] = []


def register_gate(name: str, matcher: Optional[str], priority: int = 50):
    """Decorator to register a gate check function.

    Gates can be disabled via environment variable:
        AGENT_KANBAN_GATE_DISABLE_<NAME>=1

    Example:
        AGENT_KANBAN_GATE_DISABLE_SENSITIVE_FILE=1 claude
    """

    def decorator(func: Callable[[AgentType, str, dict], HookResult]):
        env_key = f"AGENT_KANBAN_GATE_DISABLE_{name.upper()}"
        if os.environ.get(env_key, "0") == "1":
            return func
        GATES.append((name, matcher, func, priority))
        return func

    return decorator


def gate_key(agent_type: AgentType, raw_event: str) -> str:
    """String the matchers are tested against, e.g. ``claude:PreToolUse``."""
    return f"{agent_type.value}:{raw_event}"


__all__ = ["GATES", "register_gate", "gate_key", "HookResult", "AgentType"]
