"""Application configuration using pydantic-settings."""

from functools import lru_cache
from pathlib import Path
from typing import Self

from pydantic import BaseModel, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

DEVELOPMENT = "development"
_DEFAULT_SESSION_KEY = "dev-secret-key-change-in-production"


class RuntimeSettings(BaseModel):
    """``[runtime]`` table."""

    # "development" re-parses templates on every lookup
    environment: str = DEVELOPMENT


class ServerSettings(BaseModel):
    """``[server]`` table."""

    host: str = "0.0.0.0"
    port: int = 8080


class Settings(BaseSettings):
    """Application settings.

    Values come from, highest priority first: constructor kwargs,
    environment variables (``RUNTIME__ENVIRONMENT``, ``SERVER__PORT``),
    ``.env`` and finally ``env/config.toml``.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        toml_file="env/config.toml",
        extra="ignore",
        frozen=True,
    )

    runtime: RuntimeSettings = RuntimeSettings()
    server: ServerSettings = ServerSettings()

    # Directory holding static files and templates/, relative to the CWD
    assets_dir: str = "assets"

    # Session cookie signing key (the CSRF token lives in the session)
    # Generate with: python -c "import secrets; print(secrets.token_hex(32))"
    session_secret_key: str = _DEFAULT_SESSION_KEY
    require_https: bool = False

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSettingsSource(settings_cls),
        )

    @model_validator(mode="after")
    def validate_config(self) -> Self:
        if self.is_development:
            return self
        if self.session_secret_key == _DEFAULT_SESSION_KEY:
            raise ValueError(
                "SESSION_SECRET_KEY must be set to a secure random value. "
                "Set RUNTIME__ENVIRONMENT=development to skip this check."
            )
        return self

    @property
    def environment(self) -> str:
        return self.runtime.environment

    @property
    def is_development(self) -> bool:
        return self.runtime.environment == DEVELOPMENT

    @property
    def assets_path(self) -> Path:
        """Real path of the assets directory (symlinks resolved)."""
        return Path(self.assets_dir).resolve(strict=True)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Call this in tests to reset settings between test cases.
    After clearing, the next get_settings() call will create
    a fresh Settings instance with current environment variables.
    """
    get_settings.cache_clear()
