"""Tests for the command-line interface."""

from __future__ import annotations

import io
import json

import pytest

from deep_think import __version__
from deep_think.cli import (
    DEFAULT_MODEL,
    _build_options,
    _build_parser,
    _parse_stage_overrides,
    main,
)
from deep_think.infrastructure.config import DeepThinkOptions, UltraThinkOptions
from deep_think.infrastructure.llm import factory as factory_module
from tests.helpers.mock_llm import scripted_factory


def _options(argv: list[str], ultra: bool = False):
    return _build_options(_build_parser().parse_args(argv), ultra)


class TestParseStageOverrides:

    def test_values_and_names(self) -> None:
        assert _parse_stage_overrides(["verification=o3", "agent_thinking=small"]) == {
            "verification": "o3",
            "agentThinking": "small",
        }

    def test_wire_spelling(self) -> None:
        assert _parse_stage_overrides(["agentConfig=m"]) == {"agentConfig": "m"}

    @pytest.mark.parametrize("pair", ["verification", "verification=", "nope=m"])
    def test_invalid(self, pair: str) -> None:
        with pytest.raises(ValueError):
            _parse_stage_overrides([pair])


class TestBuildOptions:

    def test_defaults(self) -> None:
        options = _options(["run", "Is 97 prime?"])
        assert isinstance(options, DeepThinkOptions)
        assert options.problem_statement == "Is 97 prime?"
        assert options.thinking_model == DEFAULT_MODEL
        assert options.max_iterations == 30
        assert not options.search.enabled

    def test_ultra_flags(self) -> None:
        options = _options(
            [
                "run", "p", "--mode", "ultra", "--max-agents", "2",
                "--model", "claude-sonnet-4-5",
                "--stage", "verification=o3", "--web-search",
                "--ask", "--answers", "a few answers",
            ],
            ultra=True,
        )
        assert isinstance(options, UltraThinkOptions)
        assert options.max_agents == 2
        assert options.thinking_model == "claude-sonnet-4-5"
        assert options.model_stages.verification == "o3"
        assert options.search.enabled
        assert options.enable_ask_questions
        assert options.user_answers == "a few answers"

    def test_config_file_then_flags(self, tmp_path) -> None:
        config = tmp_path / "settings.yaml"
        config.write_text(
            "deepThink:\n"
            "  maxIterations: 7\n"
            "  requiredSuccessfulVerifications: 2\n"
            "modelStages:\n"
            "  summary: small\n"
            "  verification: big\n",
            encoding="utf-8",
        )
        options = _options(
            ["run", "p", "--config", str(config), "--max-iterations", "9",
             "--stage", "verification=o3"]
        )
        assert options.max_iterations == 9
        assert options.required_successful_verifications == 2
        assert options.model_stages.summary == "small"
        assert options.model_stages.verification == "o3"

    def test_config_file_may_carry_problem(self, tmp_path) -> None:
        config = tmp_path / "settings.json"
        config.write_text(
            '{"deep_think": {"problem_statement": "from file", "thinking_model": "m"}}',
            encoding="utf-8",
        )
        options = _options(["run", "--config", str(config)])
        assert options.problem_statement == "from file"
        assert options.thinking_model == "m"

    def test_problem_from_stdin(self, monkeypatch) -> None:
        monkeypatch.setattr("sys.stdin", io.StringIO("  from stdin \n"))
        assert _options(["run", "-"]).problem_statement == "from stdin"

    def test_context_file(self, tmp_path) -> None:
        context = tmp_path / "kb.md"
        context.write_text("Reference facts", encoding="utf-8")
        options = _options(["run", "p", "--context", str(context), "--plan"])
        assert options.knowledge_context == "Reference facts"
        assert options.enable_planning

    def test_missing_problem_rejected(self) -> None:
        with pytest.raises(ValueError, match="problem_statement"):
            _options(["run"])


class TestParser:

    def test_json_and_sse_are_exclusive(self) -> None:
        with pytest.raises(SystemExit):
            _build_parser().parse_args(["run", "p", "--json", "--sse"])

    def test_mode_choices(self) -> None:
        with pytest.raises(SystemExit):
            _build_parser().parse_args(["run", "p", "--mode", "wide"])


class TestMain:

    def test_version(self, capsys) -> None:
        with pytest.raises(SystemExit) as excinfo:
            main(["--version"])
        assert excinfo.value.code == 0
        assert capsys.readouterr().out.strip() == f"deep-think {__version__}"

    def test_no_command_prints_help(self, capsys) -> None:
        with pytest.raises(SystemExit) as excinfo:
            main([])
        assert excinfo.value.code == 0
        assert "usage: deep-think" in capsys.readouterr().out

    def test_info(self, capsys) -> None:
        with pytest.raises(SystemExit) as excinfo:
            main(["info"])
        assert excinfo.value.code == 0
        out = capsys.readouterr().out
        assert f"Deep Think v{__version__}" in out
        assert "agentThinking" in out
        assert "openai" in out

    def test_error_exit_code(self, capsys) -> None:
        with pytest.raises(SystemExit) as excinfo:
            main(["run"])
        assert excinfo.value.code == 1
        assert "Error: problem_statement must not be empty" in capsys.readouterr().err


@pytest.fixture
def scripted_models(monkeypatch):
    factory, script, model = scripted_factory()
    monkeypatch.setattr(factory_module, "ChatModelFactory", lambda: factory)
    return factory, script, model


class TestRunCommand:

    def test_json_output(self, scripted_models, capsys) -> None:
        with pytest.raises(SystemExit) as excinfo:
            main(["run", "Is 97 prime?", "--required-successes", "1", "--json"])
        assert excinfo.value.code == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["mode"] == "deep-think"
        assert payload["stopReason"] == "verified"
        assert payload["summary"] == "Final answer for the user"

    def test_sse_output(self, scripted_models, capsys) -> None:
        with pytest.raises(SystemExit) as excinfo:
            main(["run", "Is 97 prime?", "--required-successes", "1", "--sse"])
        assert excinfo.value.code == 0
        out = capsys.readouterr().out
        assert out.startswith("event: info\n")
        assert out.endswith('event: done\ndata: {"message": "Stream completed"}\n\n')
        assert "event: result\n" in out

    def test_sse_failed_run_exit_code(self, monkeypatch, capsys) -> None:
        def unavailable(model_name):
            raise RuntimeError("backend down")

        monkeypatch.setattr(factory_module, "ChatModelFactory", lambda: unavailable)
        with pytest.raises(SystemExit) as excinfo:
            main(["run", "Is 97 prime?", "--sse"])
        assert excinfo.value.code == 1
        out = capsys.readouterr().out
        assert out.endswith('event: error\ndata: {"message": "backend down"}\n\n')
        assert "event: result" not in out

    def test_dashboard_output(self, scripted_models, capsys) -> None:
        with pytest.raises(SystemExit):
            main(["run", "Is 97 prime?", "--required-successes", "1"])
        out = capsys.readouterr().out
        assert "Stop reason: verified" in out
        assert "Final answer for the user" in out

    def test_ultra_json(self, scripted_models, capsys) -> None:
        with pytest.raises(SystemExit):
            main(["run", "p", "--mode", "ultra", "--required-successes", "1",
                  "--max-iterations", "3", "--json"])
        payload = json.loads(capsys.readouterr().out)
        assert payload["mode"] == "ultra-think"
        assert payload["completedAgents"] == 2

    def test_ask(self, scripted_models, capsys) -> None:
        with pytest.raises(SystemExit):
            main(["ask", "Plan my migration"])
        assert "What constraints apply?" in capsys.readouterr().out
