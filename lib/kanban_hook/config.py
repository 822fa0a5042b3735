"""Hook configuration.

Built once per invocation from the process environment and passed to every
component. Nothing in the library reads ``os.environ`` on its own.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Sequence

from .errors import ConfigError
from .events import AgentType

# =============================================================================
# DEFAULTS
# =============================================================================

DEFAULT_API_URL = "http://127.0.0.1:7432"
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY_MS = 1000
DEFAULT_TIMEOUT_SECONDS = 5.0

ENV_PREFIX = "AGENT_KANBAN_"


@dataclass(frozen=True)
class HookConfig:
    """Everything one hook invocation needs to know about its environment."""

    agent_type: AgentType
    spool_dir: Path
    api_url: str = DEFAULT_API_URL
    api_token: str | None = None
    ticket_id: str | None = None
    run_id: str | None = None
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay_ms: int = DEFAULT_RETRY_DELAY_MS
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    debug: bool = False

    @property
    def can_deliver(self) -> bool:
        """True when identifiers and token needed by the tracking API are set."""
        return bool(self.run_id and self.ticket_id and self.api_token)

    def require_token(self) -> str:
        """Return the API token or raise ConfigError."""
        if not self.api_token:
            raise ConfigError(f"{ENV_PREFIX}API_TOKEN is not set")
        return self.api_token

    def missing_for_delivery(self) -> list[str]:
        missing = []
        if not self.run_id:
            missing.append(f"{ENV_PREFIX}RUN_ID")
        if not self.ticket_id:
            missing.append(f"{ENV_PREFIX}TICKET_ID")
        if not self.api_token:
            missing.append(f"{ENV_PREFIX}API_TOKEN")
        return missing


# =============================================================================
# HELPERS
# =============================================================================


def _clean(value: str | None) -> str | None:
    """Treat blanks and ``<YOUR_...>`` placeholders as unset."""
    if value is None:
        return None
    stripped = value.strip()
    if not stripped:
        return None
    if stripped.startswith("<YOUR_") and stripped.endswith(">"):
        return None
    return stripped


def _int_or_default(value: str | None, default: int, minimum: int) -> int:
    if value is None:
        return default
    try:
        parsed = int(value)
    except ValueError:
        return default
    return max(parsed, minimum)


def _float_or_default(value: str | None, default: float) -> float:
    if value is None:
        return default
    try:
        parsed = float(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _bool_or_default(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def default_spool_dir(platform: str | None = None, home: Path | None = None) -> Path:
    """Per-user data directory + ``/spool``, matching the desktop app."""
    platform = platform or sys.platform
    home = home or Path.home()
    if platform == "darwin":
        base = home / "Library" / "Application Support" / "agent-kanban"
    elif platform == "win32":
        base = home / "AppData" / "Roaming" / "agent-kanban"
    else:
        base = home / ".local" / "share" / "agent-kanban"
    return base / "spool"


def detect_agent_type(argv: Sequence[str], environ: Mapping[str, str]) -> AgentType:
    """Infer the calling runtime from ``--agent=`` or a session marker."""
    for arg in argv:
        if arg == "--agent=cursor":
            return AgentType.CURSOR
        if arg == "--agent=claude":
            return AgentType.CLAUDE
    if environ.get("CLAUDE_SESSION_ID"):
        return AgentType.CLAUDE
    return AgentType.CURSOR


# =============================================================================
# LOADER
# =============================================================================


def load_config(
    environ: Mapping[str, str] | None = None,
    argv: Sequence[str] | None = None,
) -> HookConfig:
    """Build a HookConfig from environment variables and CLI flags.

    Precedence for the agent type: AGENT_KANBAN_AGENT_TYPE > --agent= flag >
    CLAUDE_SESSION_ID marker > cursor.
    """
    env = os.environ if environ is None else environ
    args = sys.argv[1:] if argv is None else argv

    def get(name: str) -> str | None:
        return _clean(env.get(ENV_PREFIX + name))

    override = get("AGENT_TYPE")
    agent_type = AgentType.parse(override) if override else None
    if agent_type is None:
        agent_type = detect_agent_type(args, env)

    spool_dir = get("SPOOL_DIR")

    return HookConfig(
        agent_type=agent_type,
        spool_dir=Path(spool_dir).expanduser() if spool_dir else default_spool_dir(),
        api_url=(get("API_URL") or DEFAULT_API_URL).rstrip("/"),
        api_token=get("API_TOKEN"),
        ticket_id=get("TICKET_ID"),
        run_id=get("RUN_ID"),
        max_retries=_int_or_default(get("MAX_RETRIES"), DEFAULT_MAX_RETRIES, 1),
        retry_delay_ms=_int_or_default(get("RETRY_DELAY_MS"), DEFAULT_RETRY_DELAY_MS, 0),
        timeout_seconds=_float_or_default(get("TIMEOUT"), DEFAULT_TIMEOUT_SECONDS),
        debug=_bool_or_default(get("DEBUG"), False),
    )
