"""
Tests for the command-line entry point
"""
from unittest.mock import patch

from click.testing import CliRunner

from conftest import ScriptedModelClient, native_reply, text_reply, tool_call
from main import cli, load_cli_config
from secretary.agents.calendar.orchestrator import ConversationOrchestrator
from secretary.tools.calendar.executor import ToolExecutor


def scripted_builder(replies):
    def build(config, store):
        return ConversationOrchestrator(ScriptedModelClient(replies), ToolExecutor(store, config), config)
    return build


class TestLoadCliConfig:
    """load_cli_config"""

    def test_overrides_without_yaml(self, tmp_path):
        config = load_cli_config(str(tmp_path / "missing.yaml"), "json", 2)
        assert config.agent.tool_mode == "json"
        assert config.agent.max_iterations == 2

    def test_yaml_file(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("agent:\n  max_iterations: 4\n")
        config = load_cli_config(str(config_file), None, None)
        assert config.agent.max_iterations == 4
        assert config.agent.tool_mode == "native"


class TestCli:
    """secretary MESSAGE"""

    def test_dry_run_create(self, tmp_path):
        builder = scripted_builder([
            native_reply(tool_call("create_calendar_event", {"title": "Lunch", "start_time": "tomorrow 1pm"})),
            text_reply("Lunch is on the calendar."),
        ])
        runner = CliRunner()

        with patch("main.configure_from_config"), patch("main.build_orchestrator", side_effect=builder):
            result = runner.invoke(cli, [
                "lunch tomorrow at 1", "--dry-run", "-v",
                "--config", str(tmp_path / "missing.yaml"),
            ])

        assert result.exit_code == 0, result.output
        assert "Lunch is on the calendar." in result.output
        assert "create_calendar_event" in result.output

    def test_failed_run_exits_non_zero(self, tmp_path):
        builder = scripted_builder([native_reply(tool_call("list_calendar_events", {}))] * 2)
        runner = CliRunner()

        with patch("main.configure_from_config"), patch("main.build_orchestrator", side_effect=builder):
            result = runner.invoke(cli, [
                "loop", "--dry-run", "--max-iterations", "2",
                "--config", str(tmp_path / "missing.yaml"),
            ])

        assert result.exit_code == 1
        assert "Reached maximum iterations" in result.output

    def test_rejects_unknown_mode(self):
        result = CliRunner().invoke(cli, ["hi", "--mode", "xml"])
        assert result.exit_code == 2
