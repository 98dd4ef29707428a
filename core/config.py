# core/config.py

"""
Settings for the HTTP transport, read from the environment or a `.env` file.

Variables use the `RECORD_ENTRY_` prefix, e.g. `RECORD_ENTRY_API_BASE_URL`.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class EntrySettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="RECORD_ENTRY_",
        env_file=".env",
        extra="ignore",
    )

    api_base_url: str = "http://localhost:3000/api/v1"
    api_token: str | None = None
    # seconds; None waits indefinitely
    request_timeout: float | None = 30.0


@lru_cache
def get_settings() -> EntrySettings:
    return EntrySettings()
