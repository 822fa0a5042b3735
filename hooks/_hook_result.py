"""
HookResult returned by every gate.

A gate either allows the action, denies it (the action must not run), or
allows it with a warning the runtime should surface.
"""

from dataclasses import dataclass

ALLOW = "allow"
DENY = "deny"
WARN = "warn"


@dataclass
class HookResult:
    """Result from a gate check.

    Attributes:
        decision: "allow", "deny" or "warn"
        reason: Explanation for deny decisions, or the warning text
        category: Rule that produced a deny (e.g. "force_push")
    """

    decision: str = ALLOW
    reason: str = ""
    category: str = ""

    @property
    def denied(self) -> bool:
        return self.decision == DENY

    @property
    def warned(self) -> bool:
        return self.decision == WARN

    @staticmethod
    def allow() -> "HookResult":
        """Let the action proceed."""
        return HookResult()

    @staticmethod
    def deny(reason: str, category: str = "") -> "HookResult":
        """Block the action with an explanation."""
        return HookResult(decision=DENY, reason=reason, category=category)

    @staticmethod
    def warn(reason: str) -> "HookResult":
        """Let the action proceed but report ``reason``."""
        return HookResult(decision=WARN, reason=reason)
