"""Tests for the HookResult returned by gates."""

from _hook_result import HookResult


class TestHookResultAllow:
    """Tests for allow method."""

    def test_allow_returns_allow_decision(self):
        # Act
        result = HookResult.allow()

        # Assert
        assert result.decision == "allow"
        assert not result.denied
        assert not result.warned

    def test_default_is_allow(self):
        assert HookResult().decision == "allow"


class TestHookResultDeny:
    """Tests for deny method."""

    def test_deny_returns_deny_decision(self):
        # Act
        result = HookResult.deny("blocked reason")

        # Assert
        assert result.decision == "deny"
        assert result.denied

    def test_deny_includes_reason_and_category(self):
        # Arrange
        reason = "Dangerous operation blocked"

        # Act
        result = HookResult.deny(reason, category="force_push")

        # Assert
        assert result.reason == reason
        assert result.category == "force_push"


class TestHookResultWarn:
    """Tests for warn method."""

    def test_warn_is_not_a_deny(self):
        # Act
        result = HookResult.warn("careful")

        # Assert
        assert result.warned
        assert not result.denied
        assert result.reason == "careful"
