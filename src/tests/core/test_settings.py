"""Tests for configuration models and logging setup."""

import logging

import pytest
from pydantic import ValidationError as PydanticValidationError

from chatgraph.core.config import DEFAULT_MODEL, DatabaseAgentConfig, LLMConfig, Settings
from chatgraph.core.errors import AuthenticationError, ValidationError
from chatgraph.core.logging import LogComponent, LogLevel, configure_logging, get_logger, log_tool


class TestLLMConfig:
    """Test per-turn model settings."""

    def test_defaults(self):
        config = LLMConfig()
        assert config.model == DEFAULT_MODEL
        assert config.provider == "openai"
        assert config.model_name == "gpt-4o-mini"

    def test_model_name_may_contain_slashes(self):
        config = LLMConfig(model="openai/ft:org/custom")
        assert config.provider == "openai"
        assert config.model_name == "ft:org/custom"

    @pytest.mark.parametrize("model", ["gpt-4o", "openai/", "/gpt-4o", "cohere/command-r"])
    def test_invalid_model(self, model: str):
        with pytest.raises(ValueError):
            LLMConfig(model=model)

    def test_temperature_bounds(self):
        with pytest.raises(ValueError):
            LLMConfig(temperature=2.5)


class TestDatabaseAgentConfig:

    def test_defaults(self):
        config = DatabaseAgentConfig()
        assert config.allow_write_operations is False
        assert config.max_execution_time == 30.0

    def test_llm_config(self):
        llm = DatabaseAgentConfig(model="anthropic/claude-3-5-haiku-latest", temperature=0.2).llm_config()
        assert llm.provider == "anthropic"
        assert llm.temperature == 0.2


class TestSettings:
    """Test environment loading and validation."""

    def test_defaults(self):
        settings = Settings(_env_file=None)
        assert settings.port == 3000
        assert settings.environment == "development"
        assert settings.database_path == "./data/app.db"

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("PORT", "8080")
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("NODE_ENV", "test")
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        monkeypatch.setenv("DATABASE_URL", "sqlite:/tmp/chat.db")

        settings = Settings(_env_file=None)

        assert settings.port == 8080
        assert settings.environment == "production"
        assert settings.openai_api_key == "sk-env"
        assert settings.anthropic_api_key is None
        assert settings.database_path == "/tmp/chat.db"

    def test_reads_env_file(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("ANTHROPIC_API_KEY=sk-file\nLOG_LEVEL=debug\nUNRELATED=1\n")
        monkeypatch.setenv("LOG_LEVEL", "warn")

        settings = Settings(_env_file=str(env_file))

        assert settings.anthropic_api_key == "sk-file"
        assert settings.log_level == "warn"

    def test_keyword_arguments_win(self, monkeypatch):
        monkeypatch.setenv("PORT", "8080")
        assert Settings(_env_file=None, port=9000).port == 9000

    def test_invalid_environment_value(self, monkeypatch):
        monkeypatch.setenv("PORT", "")
        with pytest.raises(PydanticValidationError):
            Settings(_env_file=None)

    def test_api_key_for(self):
        settings = Settings(_env_file=None, openai_api_key="sk-1")
        assert settings.api_key_for("openai") == "sk-1"
        with pytest.raises(AuthenticationError) as info:
            settings.api_key_for("anthropic")
        assert info.value.provider == "anthropic"

    def test_validate_environment_requires_a_provider_key(self):
        with pytest.raises(ValidationError, match="At least one LLM provider API key"):
            Settings(_env_file=None).validate_environment()

    def test_validate_environment_database_type(self):
        with pytest.raises(ValidationError, match="Unsupported database type: postgres"):
            Settings(_env_file=None, anthropic_api_key="k", database_type="postgres").validate_environment()

    def test_valid_environment(self, settings: Settings):
        settings.validate_environment()


class TestLogging:
    """Test logging configuration."""

    @pytest.mark.parametrize("name, level", [
        ("info", LogLevel.INFO),
        ("WARN", LogLevel.WARNING),
        (" debug ", LogLevel.DEBUG),
        ("verbose", LogLevel.VERBOSE),
    ])
    def test_level_from_name(self, name: str, level: LogLevel):
        assert LogLevel.from_name(name) is level

    def test_unknown_level(self):
        with pytest.raises(ValueError):
            LogLevel.from_name("loud")

    def test_configure_logging(self, tmp_path):
        log_file = tmp_path / "chatgraph.log"
        root = logging.getLogger()
        previous = root.handlers[:]
        try:
            configure_logging(LogLevel.WARNING, log_file=str(log_file))
            assert root.level == logging.WARNING
            assert get_logger(LogComponent.TOOLS).level == LogLevel.TOOL

            log_tool(get_logger(LogComponent.TOOLS), "calling echo")
            for handler in root.handlers:
                handler.flush()
            contents = log_file.read_text()
            assert "calling echo" in contents
            assert "│ TOOL" in contents
        finally:
            for handler in root.handlers[:]:
                root.removeHandler(handler)
                handler.close()
            for handler in previous:
                root.addHandler(handler)
