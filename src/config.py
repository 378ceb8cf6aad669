"""Application settings loaded from environment variables."""

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_file() -> str | None:
    if os.getenv("PYTEST_CURRENT_TEST"):
        return None
    return ".env"


class Settings(BaseSettings):
    """Finance mentor configuration. All values come from environment variables."""

    # Anthropic
    anthropic_api_key: str = Field(default="")
    chat_model: str = Field(default="claude-sonnet-4-5-20250929")
    max_tokens: int = Field(default=2048)

    # Database
    database_path: Path = Field(default=Path("data/finmentor.db"))

    # HTTP API
    api_port: int = Field(default=8080)
    api_tokens: str = Field(default="")

    # Extraction
    default_currency: str = Field(default="INR")
    finance_autosave_threshold: float = Field(default=0.6)
    memory_relevance_threshold: float = Field(default=0.3)
    memory_context_limit: int = Field(default=10)

    # Logging
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(
        env_file=_env_file(), env_file_encoding="utf-8", extra="forbid"
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        if os.getenv("PYTEST_CURRENT_TEST"):
            return (init_settings,)
        return (init_settings, env_settings, dotenv_settings, file_secret_settings)

    def get_api_tokens(self) -> dict[str, str]:
        """Parse API_TOKENS ("token:user,token:user") into a token → user id map."""
        tokens: dict[str, str] = {}
        for pair in self.api_tokens.split(","):
            token, sep, user_id = pair.strip().partition(":")
            if sep and token.strip() and user_id.strip():
                tokens[token.strip()] = user_id.strip()
        return tokens


settings = Settings()
