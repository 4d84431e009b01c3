"""
Tests for env.py and config.py: .env loading and environment-driven settings.
"""

from __future__ import annotations

import os

import pytest

from sourcechat.config import DEFAULT_SYSTEM_PROMPT, ServiceConfig
from sourcechat.env import load_env_if_present, parse_env_file


class TestParseEnvFile:
    def test_parses_assignments(self, tmp_path) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text(
            "# comment\n"
            "\n"
            "ANTHROPIC_API_KEY=sk-ant-123\n"
            "export GEMINI_API_KEY = 'g-456'\n"
            'SOURCECHAT_SYSTEM_PROMPT="Be brief. Use = signs freely."\n'
            "not an assignment\n"
        )
        assert parse_env_file(env_file) == {
            "ANTHROPIC_API_KEY": "sk-ant-123",
            "GEMINI_API_KEY": "g-456",
            "SOURCECHAT_SYSTEM_PROMPT": "Be brief. Use = signs freely.",
        }


class TestLoadEnvIfPresent:
    def test_first_existing_file_wins(self, tmp_path, monkeypatch) -> None:
        monkeypatch.setattr(os, "environ", {k: v for k, v in os.environ.items()})
        os.environ.pop("SC_TEST_KEY", None)
        first = tmp_path / "first.env"
        second = tmp_path / "second.env"
        first.write_text("SC_TEST_KEY=first\n")
        second.write_text("SC_TEST_KEY=second\n")

        assert load_env_if_present([tmp_path / "missing.env", first, second]) is True
        assert os.environ["SC_TEST_KEY"] == "first"

    def test_existing_environment_not_overridden(self, tmp_path, monkeypatch) -> None:
        monkeypatch.setenv("SC_TEST_KEY", "from-shell")
        env_file = tmp_path / ".env"
        env_file.write_text("SC_TEST_KEY=from-file\n")

        load_env_if_present([env_file])
        assert os.environ["SC_TEST_KEY"] == "from-shell"

    def test_nothing_to_load(self, tmp_path) -> None:
        assert load_env_if_present([tmp_path / "absent.env"]) is False


class TestServiceConfigFromEnv:
    @pytest.fixture(autouse=True)
    def _isolated(self, monkeypatch):
        monkeypatch.setattr("sourcechat.config.load_default_env", lambda: False)
        for name in ("SYSTEM_PROMPT", "MAX_TOOL_ROUNDS", "VERBOSE"):
            monkeypatch.delenv(f"SOURCECHAT_{name}", raising=False)

    def test_defaults(self) -> None:
        config = ServiceConfig.from_env()
        assert config.system_prompt == DEFAULT_SYSTEM_PROMPT
        assert config.driver.max_tool_rounds == 6
        assert config.driver.verbose is False

    def test_overrides(self, monkeypatch) -> None:
        monkeypatch.setenv("SOURCECHAT_SYSTEM_PROMPT", "Answer in French.")
        monkeypatch.setenv("SOURCECHAT_MAX_TOOL_ROUNDS", "3")
        monkeypatch.setenv("SOURCECHAT_VERBOSE", "true")

        config = ServiceConfig.from_env()

        assert config.system_prompt == "Answer in French."
        assert config.driver.max_tool_rounds == 3
        assert config.driver.verbose is True

    def test_bad_round_limit(self, monkeypatch) -> None:
        monkeypatch.setenv("SOURCECHAT_MAX_TOOL_ROUNDS", "six")
        with pytest.raises(ValueError, match="MAX_TOOL_ROUNDS"):
            ServiceConfig.from_env()

    def test_negative_round_limit(self, monkeypatch) -> None:
        monkeypatch.setenv("SOURCECHAT_MAX_TOOL_ROUNDS", "-1")
        with pytest.raises(ValueError):
            ServiceConfig.from_env()
