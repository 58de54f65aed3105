from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    app_name: str = "API Relay"
    app_version: str = "0.1.0"

    # "memory" keeps everything in process, "database" uses SQLAlchemy
    storage_backend: str = "memory"
    database_url: str = "sqlite:///./apirelay.db"
    database_echo: bool = False
    database_auto_create: bool = True

    cors_allowed_origins: str | list[str] = "http://localhost:5173"

    # API key issuance
    key_prefix: str = "ar_"
    key_length: int = 32
    default_key_expiry: str = "90days"

    # Provider whitelist and defaults for new provider configs
    valid_providers: str | list[str] = "brave,openai,claude"
    provider_default_rate_limit: int = 100  # requests per minute
    provider_default_timeout_ms: int = 30000

    brave_base_url: str = "https://api.search.brave.com/res/v1"
    brave_default_count: int = 10
    brave_max_count: int = 100

    call_log_retention_days: int = 30
    call_log_default_limit: int = 100

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="APIRELAY_",
        extra="ignore",
    )

    @property
    def provider_whitelist(self) -> tuple[str, ...]:
        """Return the allowed provider identifiers, lowercased and de-duplicated."""

        raw = (
            self.valid_providers.split(",")
            if isinstance(self.valid_providers, str)
            else self.valid_providers
        )
        names: list[str] = []
        for item in raw:
            name = item.strip().lower()
            if name and name not in names:
                names.append(name)
        return tuple(names)

    @property
    def resolved_cors_allowed_origins(self) -> list[str]:
        """Return the configured CORS origins as a normalized list."""

        if isinstance(self.cors_allowed_origins, str):
            return [
                origin.strip()
                for origin in self.cors_allowed_origins.split(",")
                if origin.strip()
            ]

        return list(self.cors_allowed_origins)


@lru_cache
def get_settings() -> Settings:
    """Cache settings to avoid re-parsing environment files."""

    return Settings()
