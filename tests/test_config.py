#!/usr/bin/env python3
"""Tests for HookConfig loading from the environment."""

from pathlib import Path

import pytest

from kanban_hook.config import (
    DEFAULT_API_URL,
    default_spool_dir,
    detect_agent_type,
    load_config,
)
from kanban_hook.errors import ConfigError
from kanban_hook.events import AgentType


class TestLoadConfig:
    def test_defaults(self):
        # Act
        config = load_config(environ={}, argv=[])

        # Assert
        assert config.agent_type is AgentType.CURSOR
        assert config.api_url == DEFAULT_API_URL
        assert config.api_token is None
        assert config.run_id is None
        assert config.max_retries == 3
        assert config.retry_delay_ms == 1000
        assert config.timeout_seconds == 5.0
        assert not config.debug
        assert config.spool_dir == default_spool_dir()

    def test_reads_prefixed_variables(self, tmp_path):
        # Arrange
        environ = {
            "AGENT_KANBAN_API_URL": "http://localhost:9000/",
            "AGENT_KANBAN_API_TOKEN": "secret",
            "AGENT_KANBAN_TICKET_ID": "T-1",
            "AGENT_KANBAN_RUN_ID": "R-1",
            "AGENT_KANBAN_SPOOL_DIR": str(tmp_path),
            "AGENT_KANBAN_MAX_RETRIES": "5",
            "AGENT_KANBAN_RETRY_DELAY_MS": "250",
            "AGENT_KANBAN_TIMEOUT": "2.5",
            "AGENT_KANBAN_DEBUG": "true",
        }

        # Act
        config = load_config(environ=environ, argv=[])

        # Assert
        assert config.api_url == "http://localhost:9000"
        assert config.api_token == "secret"
        assert config.ticket_id == "T-1"
        assert config.run_id == "R-1"
        assert config.spool_dir == Path(tmp_path)
        assert config.max_retries == 5
        assert config.retry_delay_ms == 250
        assert config.timeout_seconds == 2.5
        assert config.debug

    @pytest.mark.parametrize("value", ["", "   ", "<YOUR_API_TOKEN>"])
    def test_blank_and_placeholder_values_are_unset(self, value):
        config = load_config(environ={"AGENT_KANBAN_API_TOKEN": value}, argv=[])

        assert config.api_token is None

    def test_bad_numbers_fall_back_to_defaults(self):
        config = load_config(
            environ={"AGENT_KANBAN_MAX_RETRIES": "lots", "AGENT_KANBAN_TIMEOUT": "-1"}, argv=[]
        )

        assert config.max_retries == 3
        assert config.timeout_seconds == 5.0

    def test_retries_have_a_floor_of_one(self):
        config = load_config(environ={"AGENT_KANBAN_MAX_RETRIES": "0"}, argv=[])

        assert config.max_retries == 1

    def test_agent_type_override_beats_flag(self):
        config = load_config(environ={"AGENT_KANBAN_AGENT_TYPE": "claude"}, argv=["--agent=cursor"])

        assert config.agent_type is AgentType.CLAUDE


class TestDetectAgentType:
    def test_flag(self):
        assert detect_agent_type(["stop", "--agent=cursor"], {"CLAUDE_SESSION_ID": "x"}) is AgentType.CURSOR
        assert detect_agent_type(["Stop", "--agent=claude"], {}) is AgentType.CLAUDE

    def test_session_marker(self):
        assert detect_agent_type(["Stop"], {"CLAUDE_SESSION_ID": "abc"}) is AgentType.CLAUDE

    def test_defaults_to_cursor(self):
        assert detect_agent_type(["stop"], {}) is AgentType.CURSOR


class TestDefaultSpoolDir:
    @pytest.mark.parametrize(
        "platform,parts",
        [
            ("darwin", ("Library", "Application Support", "agent-kanban", "spool")),
            ("win32", ("AppData", "Roaming", "agent-kanban", "spool")),
            ("linux", (".local", "share", "agent-kanban", "spool")),
        ],
    )
    def test_per_platform(self, platform, parts):
        home = Path("/home/dev")

        assert default_spool_dir(platform=platform, home=home) == home.joinpath(*parts)


class TestDeliveryRequirements:
    def test_complete(self, make_config):
        config = make_config()

        assert config.can_deliver
        assert config.missing_for_delivery() == []
        assert config.require_token() == "test-token"

    def test_missing_values_are_named(self, make_config):
        config = make_config(api_token=None, run_id=None)

        assert not config.can_deliver
        assert config.missing_for_delivery() == ["AGENT_KANBAN_RUN_ID", "AGENT_KANBAN_API_TOKEN"]
        with pytest.raises(ConfigError):
            config.require_token()
