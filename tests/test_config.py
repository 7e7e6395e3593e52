"""Tests for configuration loading and saving."""

import json

import pytest

from llm_market_assistant.config import AppConfig, LlmConfig, load_config, save_config
from llm_market_assistant.config.service import get_config_path

ENV_VARS = [
    "COINGECKO_API_KEY",
    "COINGECKO_BASE_URL",
    "CRYPTOPANIC_API_KEY",
    "CRYPTOPANIC_BASE_URL",
    "DEEPSEEK_API_KEY",
    "DEEPSEEK_BASE_URL",
    "LLM_MODEL",
    "LLM_TEMPERATURE",
    "LLM_MAX_TOKENS",
    "LLM_TIMEOUT_SECONDS",
    "LLM_MAX_ATTEMPTS",
    "MARKET_BRANCH_TIMEOUT",
    "CHAT_STORE_PATH",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestLoadConfig:
    def test_defaults_from_empty_env(self, tmp_path, clean_env):
        config = load_config(tmp_path / "missing.json")

        assert config.llm.api_key is None
        assert config.llm.model == "deepseek-chat"
        assert config.llm.temperature == 0.7
        assert config.llm.max_tokens == 2000
        assert config.llm.max_attempts == 3
        assert config.market.branch_timeout_seconds == 5.0
        assert config.market.history_days == 30
        assert config.api.cryptopanic_base_url == "https://cryptopanic.com/api/v1"

    def test_values_from_env(self, tmp_path, clean_env):
        clean_env.setenv("DEEPSEEK_API_KEY", " sk-abc123 ")
        clean_env.setenv("COINGECKO_API_KEY", "cg-key")
        clean_env.setenv("LLM_MODEL", "deepseek-reasoner")
        clean_env.setenv("LLM_MAX_ATTEMPTS", "5")
        clean_env.setenv("MARKET_BRANCH_TIMEOUT", "2.5")
        clean_env.setenv("CHAT_STORE_PATH", str(tmp_path / "store.json"))

        config = load_config(tmp_path / "missing.json")

        assert config.llm.api_key == "sk-abc123"
        assert config.api.coingecko_api_key == "cg-key"
        assert config.llm.model == "deepseek-reasoner"
        assert config.llm.max_attempts == 5
        assert config.market.branch_timeout_seconds == 2.5
        assert config.storage.chat_store_path == str(tmp_path / "store.json")

    def test_blank_env_uses_default(self, tmp_path, clean_env):
        clean_env.setenv("LLM_MODEL", "   ")
        assert load_config(tmp_path / "missing.json").llm.model == "deepseek-chat"

    def test_file_takes_priority(self, tmp_path, clean_env):
        clean_env.setenv("LLM_MODEL", "from-env")
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"llm": {"model": "from-file"}}), encoding="utf-8")

        assert load_config(path).llm.model == "from-file"

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{oops", encoding="utf-8")

        with pytest.raises(ValueError, match="Invalid configuration file"):
            load_config(path)

    def test_unknown_field_rejected(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"llm": {"modle": "typo"}}), encoding="utf-8")

        with pytest.raises(ValueError):
            load_config(path)

    def test_save_and_reload(self, tmp_path):
        config = AppConfig(llm=LlmConfig(api_key="sk-saved", max_tokens=512))
        path = save_config(config, tmp_path / "sub" / "config.json")

        assert path.exists()
        assert load_config(path) == config

    def test_config_path_override(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LLM_MARKET_CONFIG", str(tmp_path / "custom.json"))
        assert get_config_path() == tmp_path / "custom.json"


class TestLlmConfigValidation:
    def test_temperature_range(self):
        with pytest.raises(ValueError):
            LlmConfig(temperature=3.0)

    def test_attempts_positive(self):
        with pytest.raises(ValueError):
            LlmConfig(max_attempts=0)
