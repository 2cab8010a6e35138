"""Configuration models.

Process-wide settings are read from the environment (and a ``.env`` file when
present). Per-call model settings travel with each request as an
``LLMConfig``.

Example:
    ```python
    settings = Settings()
    llm_config = LLMConfig(model="anthropic/claude-3-5-haiku-latest", temperature=0.2)
    llm_config.provider    # "anthropic"
    llm_config.model_name  # "claude-3-5-haiku-latest"
    ```
"""

from typing import Optional, List, Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from chatgraph.core.errors import AuthenticationError, ValidationError

SUPPORTED_PROVIDERS = ("openai", "anthropic")
DEFAULT_MODEL = "openai/gpt-4o-mini"


def check_model_string(value: str) -> str:
    """Validate a `provider/model` string."""
    provider, _, model_name = value.partition("/")
    if not provider or not model_name:
        raise ValueError(
            f"Invalid model string format: {value}. Expected format: provider/model"
        )
    if provider not in SUPPORTED_PROVIDERS:
        raise ValueError(f"Unsupported LLM provider: {provider}")
    return value


class LLMConfig(BaseModel):
    """Model settings for one conversation turn.

    Attributes:
        model: Model string in ``provider/model`` form
        temperature: Sampling temperature (0 to 2)
        max_tokens: Optional completion token cap
        system_prompt: Optional override of the default chat instructions
    """
    model: str = DEFAULT_MODEL
    temperature: float = Field(default=0.7, ge=0, le=2)
    max_tokens: Optional[int] = Field(default=None, gt=0)
    system_prompt: Optional[str] = None

    @field_validator("model")
    @classmethod
    def validate_model(cls, value: str) -> str:
        return check_model_string(value)

    @property
    def provider(self) -> str:
        return self.model.split("/", 1)[0]

    @property
    def model_name(self) -> str:
        return self.model.split("/", 1)[1]


class DatabaseAgentConfig(BaseModel):
    """Settings for the natural-language-to-SQL sub-agent."""
    model: str = DEFAULT_MODEL
    temperature: float = Field(default=0.1, ge=0, le=2)
    max_tokens: Optional[int] = Field(default=None, gt=0)
    allow_write_operations: bool = Field(
        default=False,
        description="Allow INSERT, UPDATE, DELETE and DDL statements"
    )
    max_execution_time: float = Field(
        default=30.0,
        gt=0,
        description="Max query execution time in seconds"
    )

    @field_validator("model")
    @classmethod
    def validate_model(cls, value: str) -> str:
        return check_model_string(value)

    def llm_config(self) -> LLMConfig:
        """Model settings used by the sub-agent's own LLM steps."""
        return LLMConfig(
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )


class Settings(BaseSettings):
    """Process settings loaded from environment variables and ``.env``.

    Each field reads the upper-cased variable of the same name
    (``OPENAI_API_KEY``, ``DATABASE_URL``...). Keyword arguments win over
    the environment.
    """
    port: int = 3000
    host: str = "0.0.0.0"
    environment: Literal["development", "production", "test"] = "development"
    openai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    tavily_api_key: Optional[str] = None
    log_level: str = "info"
    log_file: Optional[str] = None
    database_url: str = "sqlite:./data/app.db"
    database_type: str = "sqlite"
    cors_origin: str = "*"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def database_path(self) -> str:
        """Filesystem path from a ``sqlite:<path>`` database URL."""
        if self.database_url.startswith("sqlite:"):
            return self.database_url[len("sqlite:"):]
        return self.database_url

    def api_key_for(self, provider: str) -> str:
        """Return the API key for a model provider.

        Raises:
            AuthenticationError: If the provider's key is not configured
        """
        key = {
            "openai": self.openai_api_key,
            "anthropic": self.anthropic_api_key,
        }.get(provider)
        if not key:
            label = "OpenAI" if provider == "openai" else provider.capitalize()
            raise AuthenticationError(f"{label} API key not configured", provider=provider)
        return key

    def validate_environment(self) -> None:
        """Fail fast when the server cannot reach any model provider."""
        errors: List[str] = []
        if not self.openai_api_key and not self.anthropic_api_key:
            errors.append(
                "At least one LLM provider API key must be configured "
                "(OPENAI_API_KEY or ANTHROPIC_API_KEY)"
            )
        if self.database_type.lower() != "sqlite":
            errors.append(f"Unsupported database type: {self.database_type}")
        if errors:
            raise ValidationError("Environment validation failed:\n" + "\n".join(errors))
