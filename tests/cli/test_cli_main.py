# Copyright 2026 Firefly Software Solutions Inc
# SPDX-License-Identifier: Apache-2.0

"""Tests for the erpa command-line interface."""

import argparse
import importlib
import json

import pytest

from erpa.cli.main import create_parser, load_config, main
from erpa.exceptions import ConfigurationError
from erpa.llm.factory import LLMProviderFactory

cli_main = importlib.import_module("erpa.cli.main")

PAGE = {
    "url": "https://example.edu/about",
    "sections": [
        {"title": "Campus", "locator": "#campus", "content": "The campus covers 209 acres."},
        {"title": "FAQ", "locator": "#faq", "content": "Tours run daily at noon."},
    ],
}


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    """Keep CLI runs from rebinding the package logger to captured stdout."""
    calls = []
    monkeypatch.setattr(cli_main, "configure_logging", lambda **kwargs: calls.append(kwargs))
    return calls


@pytest.fixture
def page_file(tmp_path):
    path = tmp_path / "page.json"
    path.write_text(json.dumps(PAGE))
    return path


@pytest.fixture
def scripted_factory(monkeypatch, provider):
    """Make every provider the factory creates the scripted provider."""
    requested = []

    def create(provider_name, model=None, api_key=None, **kwargs):
        requested.append({"provider": provider_name, "model": model, **kwargs})
        return provider

    monkeypatch.setattr(LLMProviderFactory, "create", staticmethod(create))
    return requested


def run_cli(argv):
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    return exc_info.value.code


class TestVersionAndActions:
    def test_version(self, capsys):
        assert run_cli(["version"]) == 0
        assert capsys.readouterr().out.strip() == "Erpa 0.3.0"

    def test_version_json(self, capsys):
        assert run_cli(["version", "--json"]) == 0
        info = json.loads(capsys.readouterr().out)
        assert info["erpa"] == "0.3.0"
        assert "python" in info

    def test_actions_json(self, capsys):
        assert run_cli(["actions", "--json"]) == 0
        actions = json.loads(capsys.readouterr().out)
        assert [a["name"] for a in actions] == [
            "navigate", "read_out", "get_content", "semantic_search", "summarize_page", "task_complete",
        ]
        assert actions[-1]["is_terminal"] is True

    def test_actions_text(self, capsys):
        assert run_cli(["actions"]) == 0
        out = capsys.readouterr().out
        assert "task_complete [terminal]" in out
        assert "Parameters: location (string, required)" in out
        assert "Parameters: none" in out

    def test_no_command_prints_help(self, capsys):
        assert run_cli([]) == 0
        assert "usage: erpa" in capsys.readouterr().out

    def test_logging_flags(self, quiet_logging):
        run_cli(["--log-level", "DEBUG", "--human", "version"])

        assert quiet_logging == [{"level": "DEBUG", "human_readable": True}]


class TestRun:
    def test_completes_task_as_json(self, capsys, page_file, provider, parse_reply, scripted_factory):
        provider.script(
            classifier=["<blank>"],
            parser=[
                parse_reply("get_content", {"selector": "#faq"}),
                parse_reply("task_complete", {"summary": "Tours run daily at noon."}),
            ],
        )

        code = run_cli(["run", "When are tours?", "--page", str(page_file), "--json", "--provider", "ollama"])

        assert code == 0
        result = json.loads(capsys.readouterr().out)
        assert result["state"] == "task_complete"
        assert result["text"] == "Task completed! Tours run daily at noon."
        assert result["iterations"] == 2
        assert scripted_factory[0]["provider"] == "ollama"

    def test_page_sections_reach_the_oracle(self, page_file, provider, scripted_factory):
        run_cli(["run", "Go to campus", "--page", str(page_file), "--json"])

        parser_call = provider.calls_starting_with("Parse this command")[0]
        assert 'Available sections: "Campus" (#campus), "FAQ" (#faq)' in parser_call[0]["content"]

    def test_console_output(self, capsys, page_file, provider, parse_reply, scripted_factory):
        provider.script(parser=[
            parse_reply("navigate", {"location": "#campus"}),
            parse_reply("task_complete", {}),
        ])

        code = run_cli(["run", "Go to campus", "--page", str(page_file), "-v"])

        out = capsys.readouterr().out
        assert code == 0
        assert "Instruction" in out
        assert "[STEP 1] Executing navigate: Running function..." in out
        assert "navigate -> " in out
        assert "Task completed! All requested actions have been performed." in out

    def test_direct_answer(self, capsys, page_file, provider, scripted_factory):
        provider.script(classifier=["2+2 equals 4"])

        code = run_cli(["run", "What is 2+2?", "--page", str(page_file), "--json"])

        assert code == 0
        assert json.loads(capsys.readouterr().out)["state"] == "answered"

    def test_parse_failure_exit_code(self, capsys, page_file, scripted_factory):
        code = run_cli(["run", "Order a pizza", "--page", str(page_file), "--json"])

        assert code == 1
        assert json.loads(capsys.readouterr().out)["failure"] == "parse_failure"

    def test_max_iterations_flag(self, capsys, page_file, provider, parse_reply, scripted_factory):
        provider.script(parser=[parse_reply("summarize_page", {})] * 3)

        code = run_cli(["run", "Summarize", "--page", str(page_file), "--json", "--max-iterations", "2"])

        assert code == 1
        result = json.loads(capsys.readouterr().out)
        assert result["state"] == "max_iterations_reached"
        assert result["iterations"] == 2

    def test_invalid_max_iterations(self, capsys, page_file, scripted_factory):
        code = run_cli(["run", "Summarize", "--page", str(page_file), "--max-iterations", "50"])

        assert code == 2
        assert "max_iterations must be between 1 and 20" in capsys.readouterr().err

    def test_missing_page(self, capsys, tmp_path, scripted_factory):
        code = run_cli(["run", "Summarize", "--page", str(tmp_path / "missing.json")])

        assert code == 2
        assert "Page snapshot not found" in capsys.readouterr().err

    def test_blank_instruction(self, capsys, page_file, scripted_factory):
        code = run_cli(["run", "   ", "--page", str(page_file), "--json"])

        assert code == 2
        assert "empty instruction" in capsys.readouterr().err


class TestChat:
    def test_streams_reply(self, capsys, provider, scripted_factory):
        provider.stream_fragments = ["Hello", ", ", "world"]

        assert run_cli(["chat", "Say hello"]) == 0
        assert capsys.readouterr().out == "Hello, world\n"
        assert provider.calls[0][0] == {"role": "system", "content": "You are a helpful assistant."}


class TestLoadConfig:
    def _args(self, **overrides):
        args = create_parser().parse_args(["run", "x", "--page", "p.json"])
        for key, value in overrides.items():
            setattr(args, key, value)
        return args

    def test_defaults(self):
        config = load_config(self._args())

        assert config.max_iterations == 10
        assert config.llm.provider == "openai"

    def test_flags_override_file_and_environment(self, tmp_path, monkeypatch):
        path = tmp_path / "agent.yaml"
        path.write_text("max_iterations: 4\nllm:\n  provider: ollama\n  model: qwen3:8b\n")
        monkeypatch.setenv("ERPA_LLM_MODEL", "llama3")

        config = load_config(self._args(config=str(path), max_iterations=6))

        assert config.llm.provider == "ollama"
        assert config.llm.model == "llama3"
        assert config.max_iterations == 6

    def test_zero_timeout_disables(self):
        assert load_config(self._args(timeout=0)).oracle_timeout_seconds is None
        assert load_config(self._args(timeout=5)).oracle_timeout_seconds == 5

    def test_invalid_value(self):
        with pytest.raises(ConfigurationError):
            load_config(self._args(max_iterations=0))

    def test_missing_config_file(self):
        with pytest.raises(ConfigurationError):
            load_config(argparse.Namespace(config="nope.yaml"))
