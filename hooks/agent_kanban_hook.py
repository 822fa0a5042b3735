#!/usr/bin/env python3
"""
Agent Kanban Hook: reports one agent lifecycle event per process.

Invoked by the Claude and Cursor agent runtimes:

    agent_kanban_hook.py <EventName> [--agent=claude|cursor] < payload.json

PER INVOCATION:
    1. gate     - pre-execution events run the safety gates (no network)
    2. status   - stop events PATCH the run's terminal status
    3. deliver  - normalize and POST the event, with retry
    4. spool    - on delivery failure, persist the event to the spool dir
    5. drain    - always try to flush everything already spooled
    6. respond  - exit code / stdout in the shape the runtime expects

GATES (by priority, see hooks/gates/):
    10 dangerous_command - deny rm -rf /, force push, mkfs, dd, fork bombs
    50 sensitive_file    - warn on .env, credentials, ~/.ssh, ~/.aws

RESPONSES:
    claude  deny            -> reason on stderr, exit 2
    claude  UserPromptSubmit -> ticket context on stdout
    cursor  gated events    -> {"continue", "permission", ...} JSON
    cursor  other events    -> {"continue": true}
    any     malformed input -> {"continue": true}, exit 0

Only a safety deny changes the exit code. Delivery, spool and parse
failures are logged to stderr and never block the agent.
"""

import sys
from pathlib import Path

_hooks_dir = Path(__file__).resolve().parent
_lib_dir = _hooks_dir.parent / "lib"
for p in [str(_hooks_dir), str(_lib_dir)]:
    if p not in sys.path:
        sys.path.insert(0, p)

import json  # noqa: E402
import logging  # noqa: E402
import re  # noqa: E402
import time  # noqa: E402
from dataclasses import dataclass  # noqa: E402
from typing import Any, Optional, TextIO  # noqa: E402

from kanban_hook.config import HookConfig, load_config  # noqa: E402
from kanban_hook.context import build_prompt_context  # noqa: E402
from kanban_hook.delivery import RetryingPoster  # noqa: E402
from kanban_hook.errors import SpoolError  # noqa: E402
from kanban_hook.events import AgentType, CanonicalEvent, normalize_event  # noqa: E402
from kanban_hook.run_status import (  # noqa: E402
    derive_run_status,
    is_stop_event,
    report_run_status,
)
from kanban_hook.spool import SpoolStore  # noqa: E402

from _hook_result import HookResult  # noqa: E402
from gates import GATES, gate_key  # noqa: E402

logger = logging.getLogger("kanban_hook.hook")

EXIT_ALLOW = 0
EXIT_DENY = 2

CONTINUE = {"continue": True}

# Raw events that run the gates before the runtime executes the action
GATED_EVENTS = {
    AgentType.CLAUDE: frozenset({"PreToolUse"}),
    AgentType.CURSOR: frozenset({"beforeShellExecution", "beforeReadFile", "beforeMCPExecution"}),
}

CURSOR_DENY_AGENT_MESSAGE = "This command was blocked for safety. Please use a safer alternative."


@dataclass
class HookResponse:
    """What the process writes and how it exits."""

    stdout: str = ""
    stderr: str = ""
    exit_code: int = EXIT_ALLOW


# =============================================================================
# LOGGING
# =============================================================================


def configure_logging(debug: bool = False) -> None:
    """Send library logs to stderr; stdout belongs to the runtime response."""
    root = logging.getLogger("kanban_hook")
    root.setLevel(logging.DEBUG if debug else logging.WARNING)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("[kanban-hook] %(levelname)s %(name)s: %(message)s"))
        root.addHandler(handler)


# =============================================================================
# GATE INDEX
# =============================================================================

GATES_BY_KEY: dict[str, list] = {}
_GATE_MATCHERS: dict[str, re.Pattern] = {}


def _build_gate_index():
    """Pre-compile matchers and reset the per-event cache."""
    global GATES_BY_KEY, _GATE_MATCHERS
    GATES_BY_KEY = {}
    _GATE_MATCHERS = {}
    for name, matcher, check_func, priority in GATES:
        if matcher is not None and matcher not in _GATE_MATCHERS:
            _GATE_MATCHERS[matcher] = re.compile(f"^({matcher})$")


def _get_gates_for(key: str) -> list:
    """Gates whose matcher accepts ``key``, cached per key."""
    if key not in GATES_BY_KEY:
        applicable = []
        for gate in GATES:
            name, matcher, check_func, priority = gate
            if matcher is None:
                applicable.append(gate)
                continue
            pattern = _GATE_MATCHERS.get(matcher)
            if pattern and pattern.match(key):
                applicable.append(gate)
        applicable.sort(key=lambda x: x[3])
        GATES_BY_KEY[key] = applicable
    return GATES_BY_KEY[key]


def is_gated_event(agent_type: AgentType, raw_event: str) -> bool:
    return raw_event in GATED_EVENTS.get(agent_type, frozenset())


def run_gates(agent_type: AgentType, raw_event: str, payload: dict) -> HookResult:
    """Run applicable gates. First deny wins; warnings are joined."""
    warnings = []
    for name, matcher, check_func, priority in _get_gates_for(gate_key(agent_type, raw_event)):
        try:
            result = check_func(agent_type, raw_event, payload)
        except Exception as e:
            logger.error("gate %s error: %s", name, e)
            continue
        if result.denied:
            logger.warning("gate %s denied %s (%s)", name, raw_event, result.category)
            return result
        if result.warned and result.reason:
            warnings.append(result.reason)
    if warnings:
        return HookResult.warn("\n".join(warnings))
    return HookResult.allow()


# =============================================================================
# DELIVERY
# =============================================================================


def deliver_or_spool(event: CanonicalEvent, poster: RetryingPoster, spool: SpoolStore) -> bool:
    """POST ``event``; spool it if that fails. Returns True if delivered."""
    try:
        delivered = poster.post_event(event)
    except Exception as e:
        logger.warning("delivery of %s event raised: %s", event.event_type, e)
        delivered = False
    if delivered:
        return True
    try:
        path = spool.enqueue(event)
    except SpoolError as e:
        logger.error("event lost: %s", e)
        return False
    logger.warning("delivery failed; %s event spooled to %s", event.event_type, path)
    return False


def drain_spool(spool: SpoolStore, poster: RetryingPoster) -> None:
    try:
        spool.drain(poster)
    except Exception as e:
        logger.warning("spool drain failed: %s", e)


# =============================================================================
# RESPONSES
# =============================================================================


def _claude_response(config: HookConfig, raw_event: str, gate: Optional[HookResult]) -> HookResponse:
    if gate is not None and gate.denied:
        return HookResponse(stderr=gate.reason, exit_code=EXIT_DENY)
    response = HookResponse()
    if raw_event == "UserPromptSubmit":
        response.stdout = build_prompt_context(config)
    if gate is not None and gate.warned:
        response.stderr = gate.reason
    return response


def _cursor_response(raw_event: str, gate: Optional[HookResult]) -> HookResponse:
    if gate is None:
        return HookResponse(stdout=json.dumps(CONTINUE))
    if gate.denied:
        decision = {
            "continue": False,
            "permission": "deny",
            "userMessage": gate.reason.splitlines()[0] if gate.reason else "Blocked by Agent Kanban for safety",
            "agentMessage": CURSOR_DENY_AGENT_MESSAGE,
        }
        return HookResponse(stdout=json.dumps(decision))
    decision = {"continue": True, "permission": "allow"}
    if gate.warned:
        decision["userMessage"] = gate.reason
        decision["agentMessage"] = gate.reason
    return HookResponse(stdout=json.dumps(decision), stderr=gate.reason if gate.warned else "")


def build_response(config: HookConfig, raw_event: str, gate: Optional[HookResult]) -> HookResponse:
    """Shape the gate outcome the way the calling runtime reads it."""
    if config.agent_type == AgentType.CURSOR:
        return _cursor_response(raw_event, gate)
    return _claude_response(config, raw_event, gate)


# =============================================================================
# DRIVER
# =============================================================================


def handle_hook(
    config: HookConfig,
    raw_event: str,
    payload: Any,
    raw_text: Optional[str] = None,
    poster: Optional[RetryingPoster] = None,
    spool: Optional[SpoolStore] = None,
) -> HookResponse:
    """Process one lifecycle event end to end."""
    data = payload if isinstance(payload, dict) else {}
    agent_type = config.agent_type

    # Gate before any network I/O
    gate = run_gates(agent_type, raw_event, data) if is_gated_event(agent_type, raw_event) else None

    if poster is None:
        poster = RetryingPoster.from_config(config)
    if spool is None:
        spool = SpoolStore(config.spool_dir)
    if not config.can_deliver:
        logger.debug("not configured for delivery, missing %s", ", ".join(config.missing_for_delivery()))

    try:
        if is_stop_event(agent_type, raw_event):
            report_run_status(poster.client, config.run_id, derive_run_status(agent_type, data))

        event = normalize_event(
            agent_type,
            raw_event,
            payload,
            run_id=config.run_id,
            ticket_id=config.ticket_id,
            raw=raw_text if raw_text and raw_text.strip() else None,
        )
        deliver_or_spool(event, poster, spool)
        drain_spool(spool, poster)
    except Exception as e:
        logger.error("hook processing error for %s: %s", raw_event, e)

    return build_response(config, raw_event, gate)


def _event_name(argv: list[str]) -> Optional[str]:
    for arg in argv:
        if not arg.startswith("--"):
            return arg
    return None


def main(
    argv: Optional[list[str]] = None,
    stdin: Optional[TextIO] = None,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
) -> int:
    """Entry point. Returns the process exit code."""
    start = time.time()
    argv = sys.argv[1:] if argv is None else argv
    stdin = sys.stdin if stdin is None else stdin
    stdout = sys.stdout if stdout is None else stdout
    stderr = sys.stderr if stderr is None else stderr

    try:
        config = load_config(argv=argv)
        configure_logging(config.debug)

        raw_event = _event_name(argv)
        if not raw_event:
            logger.error("usage: agent_kanban_hook.py <event-type> [--agent=claude|cursor]")
            print(json.dumps(CONTINUE), file=stdout)
            return EXIT_ALLOW

        text = stdin.read()
        payload = json.loads(text) if text.strip() else {}
        response = handle_hook(config, raw_event, payload, raw_text=text)
    except Exception as e:
        logger.error("hook error: %s", e)
        print(json.dumps(CONTINUE), file=stdout)
        return EXIT_ALLOW

    if response.stdout:
        print(response.stdout, file=stdout)
    if response.stderr:
        print(response.stderr, file=stderr)

    elapsed = (time.time() - start) * 1000
    if elapsed > 2000:
        logger.warning("slow invocation: %.1fms", elapsed)

    return response.exit_code


# Pre-sort gates by priority at module load
GATES.sort(key=lambda x: x[3])
_build_gate_index()


if __name__ == "__main__":
    sys.exit(main())
