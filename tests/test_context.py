"""Tests for prompt-submission context."""

from kanban_hook.context import build_prompt_context


class TestBuildPromptContext:
    def test_no_ticket_no_context(self, make_config):
        assert build_prompt_context(make_config(ticket_id=None)) == ""

    def test_names_ticket_and_run(self, make_config):
        # Act
        text = build_prompt_context(make_config())

        # Assert
        assert text.startswith("## Agent Kanban Context")
        assert "ticket T-42 (run run-7)" in text
        assert "### Guidelines:" in text

    def test_ticket_without_run(self, make_config):
        text = build_prompt_context(make_config(run_id=None))

        assert "You are working on ticket T-42." in text
