"""Safety patterns for commands and file paths.

Pure functions, no I/O. ``evaluate`` decides whether a shell command is
blocked; ``check_sensitive_path`` flags files worth a warning. Patterns are
compiled once at import.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

# =============================================================================
# DANGER PATTERNS
# =============================================================================


@dataclass(frozen=True)
class DangerPattern:
    category: str
    pattern: re.Pattern
    description: str


DANGER_PATTERNS: tuple[DangerPattern, ...] = (
    DangerPattern(
        "destructive_delete",
        re.compile(r"\brm\s+-(?:rf|fr)\s+(?:/|~/?|\$HOME/?)(?![\w./-])"),
        "recursive delete of the root or home directory",
    ),
    DangerPattern(
        "force_push",
        re.compile(r"\bgit\s+push\b.*\s(?:--force\b|--force-with-lease\b|-f\b)"),
        "forced push to a remote",
    ),
    DangerPattern(
        "privileged_delete",
        re.compile(r"\bsudo\s+rm\b"),
        "privileged deletion",
    ),
    DangerPattern(
        "filesystem_format",
        re.compile(r"\bmkfs\."),
        "filesystem formatting",
    ),
    DangerPattern(
        "block_device_write",
        re.compile(r"\bdd\s+.*\bif=\S*.*\bof=/dev/"),
        "raw write to a block device",
    ),
    DangerPattern(
        "fork_bomb",
        re.compile(r":\(\)\s*\{\s*:\s*\|\s*:\s*&\s*\}\s*;\s*:"),
        "fork bomb",
    ),
)

# Reading these is allowed but reported.
SENSITIVE_FILE_PATTERNS: tuple[re.Pattern, ...] = (
    re.compile(r"(?:^|/)\.env$"),
    re.compile(r"(?:^|/)\.env\.local$"),
    re.compile(r"credentials\.(?:json|ya?ml)$"),
    re.compile(r"secrets\.(?:json|ya?ml)$"),
    re.compile(r"(?:^|/)\.ssh/"),
    re.compile(r"(?:^|/)\.aws/"),
)


# =============================================================================
# DECISIONS
# =============================================================================


@dataclass(frozen=True)
class SafetyVerdict:
    """Outcome of ``evaluate``. ``category`` names the first matching rule."""

    blocked: bool
    category: str | None = None
    description: str = ""

    @property
    def message(self) -> str:
        if not self.blocked:
            return ""
        return f"Blocked by Agent Kanban for safety: {self.description} ({self.category})"


ALLOWED = SafetyVerdict(blocked=False)


def evaluate(command: str | None) -> SafetyVerdict:
    """Check a shell command against the danger patterns. First match wins."""
    if not command or not isinstance(command, str):
        return ALLOWED
    for rule in DANGER_PATTERNS:
        if rule.pattern.search(command):
            return SafetyVerdict(blocked=True, category=rule.category, description=rule.description)
    return ALLOWED


def check_sensitive_path(file_path: str | None) -> str | None:
    """Return a warning message if ``file_path`` looks like a secrets file."""
    if not file_path or not isinstance(file_path, str):
        return None
    normalized = file_path.replace("\\", "/")
    for pattern in SENSITIVE_FILE_PATTERNS:
        if pattern.search(normalized):
            return f"Warning: accessing potentially sensitive file: {file_path}"
    return None
