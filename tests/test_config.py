"""
Tests for settings and option parsing.
"""

import os

import pytest

from usageboard.config import DEFAULT_DAYS, Settings, parse_days, parse_sort
from usageboard.connect.costs import CostMode
from usageboard.see.models import SortKey

ENV_VARS = [
    "ANTHROPIC_ADMIN_API_KEY",
    "OPENAI_ORG_API_KEY",
    "OPENAI_ADMIN_KEY",
    "CURSOR_ADMIN_API_KEY",
    "USAGEBOARD_OPENAI_COST_MODE",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestParseDays:
    """Tests for parse_days."""

    def test_default(self):
        assert parse_days(None) == DEFAULT_DAYS == 30

    def test_valid(self):
        assert parse_days("7") == 7
        assert parse_days(90) == 90

    @pytest.mark.parametrize("raw", ["abc", "0", "-3", "2.5", ""])
    def test_invalid_falls_back_with_warning(self, raw, capsys):
        assert parse_days(raw) == 30
        assert "Invalid --days value" in capsys.readouterr().err


class TestParseSort:
    """Tests for parse_sort."""

    def test_default(self):
        assert parse_sort(None) == SortKey.REQUESTS

    @pytest.mark.parametrize("raw,expected", [
        ("requests", SortKey.REQUESTS),
        ("tokens", SortKey.TOKENS),
        ("cost", SortKey.COST),
    ])
    def test_valid(self, raw, expected):
        assert parse_sort(raw) == expected

    def test_invalid_falls_back_with_warning(self, capsys):
        assert parse_sort("popularity") == SortKey.REQUESTS
        assert 'Invalid --sort value "popularity"' in capsys.readouterr().err


class TestSettings:
    """Tests for Settings.from_env."""

    def test_no_keys(self, clean_env):
        settings = Settings.from_env(dotenv=False)

        assert settings.has_any_key is False
        assert settings.openai_cost_mode == CostMode.PROPORTIONAL

    def test_reads_keys(self, clean_env):
        clean_env.setenv("ANTHROPIC_ADMIN_API_KEY", "sk-ant-admin")
        clean_env.setenv("CURSOR_ADMIN_API_KEY", "cursor-key")

        settings = Settings.from_env(dotenv=False)

        assert settings.anthropic_admin_api_key == "sk-ant-admin"
        assert settings.openai_admin_api_key is None
        assert settings.cursor_admin_api_key == "cursor-key"
        assert settings.has_any_key is True

    def test_openai_admin_key_alias(self, clean_env):
        clean_env.setenv("OPENAI_ADMIN_KEY", "sk-admin")
        assert Settings.from_env(dotenv=False).openai_admin_api_key == "sk-admin"

    def test_empty_key_is_unset(self, clean_env):
        clean_env.setenv("CURSOR_ADMIN_API_KEY", "")
        assert Settings.from_env(dotenv=False).has_any_key is False

    def test_cost_mode(self, clean_env):
        clean_env.setenv("USAGEBOARD_OPENAI_COST_MODE", "unavailable")
        assert Settings.from_env(dotenv=False).openai_cost_mode == CostMode.UNAVAILABLE

    def test_invalid_cost_mode(self, clean_env, capsys):
        clean_env.setenv("USAGEBOARD_OPENAI_COST_MODE", "direct")

        assert Settings.from_env(dotenv=False).openai_cost_mode == CostMode.PROPORTIONAL
        assert "USAGEBOARD_OPENAI_COST_MODE" in capsys.readouterr().err

    def test_loads_dotenv_file(self, clean_env, tmp_path):
        (tmp_path / ".env").write_text("ANTHROPIC_ADMIN_API_KEY=from-dotenv\n")
        clean_env.chdir(tmp_path)

        try:
            assert Settings.from_env().anthropic_admin_api_key == "from-dotenv"
        finally:
            os.environ.pop("ANTHROPIC_ADMIN_API_KEY", None)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
