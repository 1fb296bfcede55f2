"""Application configuration — loaded from environment variables."""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration loaded from env vars (or ``.env`` file)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_extensions: str = (
        "ts,js,tsx,jsx,py,rs,go,java,c,cpp,h,hpp,css,html,json,yaml,yml,md,sh,sql,vue,svelte"
    )
    default_format: str = "markdown"
    default_model: str = "gpt-4o"
    reserve_tokens: int = 1_000
    max_file_size_kb: int = 1_024
    output_dir: str = "."
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8000

    @property
    def extensions(self) -> list[str]:
        return [e.strip() for e in self.default_extensions.split(",") if e.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the singleton application settings (cached after first call)."""
    return Settings()
