"""Shared fixtures for the Agent Kanban hook tests."""

import sys
from pathlib import Path

# Add lib and hooks to path for imports
_root = Path(__file__).parent.parent
for _p in (str(_root / "lib"), str(_root / "hooks")):
    if _p not in sys.path:
        sys.path.insert(0, _p)

import pytest  # noqa: E402

from kanban_hook.config import HookConfig  # noqa: E402
from kanban_hook.events import AgentType  # noqa: E402

HOOK_ENV_VARS = (
    "AGENT_KANBAN_API_URL",
    "AGENT_KANBAN_API_TOKEN",
    "AGENT_KANBAN_TICKET_ID",
    "AGENT_KANBAN_RUN_ID",
    "AGENT_KANBAN_AGENT_TYPE",
    "AGENT_KANBAN_SPOOL_DIR",
    "AGENT_KANBAN_MAX_RETRIES",
    "AGENT_KANBAN_RETRY_DELAY_MS",
    "AGENT_KANBAN_TIMEOUT",
    "AGENT_KANBAN_DEBUG",
    "CLAUDE_SESSION_ID",
)


@pytest.fixture
def make_config(tmp_path):
    """Factory for HookConfig with delivery identifiers filled in."""

    def _make(**overrides):
        values = dict(
            agent_type=AgentType.CLAUDE,
            spool_dir=tmp_path / "spool",
            api_url="http://127.0.0.1:7432",
            api_token="test-token",
            ticket_id="T-42",
            run_id="run-7",
        )
        values.update(overrides)
        return HookConfig(**values)

    return _make


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every variable the hook reads from the environment."""
    for name in HOOK_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
