"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

DEFAULT_TABLE_NAME = "BabyLog"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    airtable_token: str = ""
    airtable_base_id: str = ""
    airtable_table_name: str = DEFAULT_TABLE_NAME
    airtable_api_url: str = "https://api.airtable.com/v0"
    timer_state_path: str = ".baby_tracker/timer_state.json"
    timezone: str = "UTC"
    rate_limit_delay_seconds: float = 30
    rate_limit_max_retries: int = 2
    history_page_size: int = 100
    rest_seconds: int = 180
    toast_seconds: float = 2.5
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def normalize_credentials(
    token: str, base_id: str, table_name: str | None
) -> tuple[str, str, str]:
    """Strip whitespace from credentials the way the settings form saves them."""
    cleaned_token = "".join(token.split())
    cleaned_base_id = "".join(base_id.split())
    cleaned_table = (table_name or "").strip() or DEFAULT_TABLE_NAME
    return cleaned_token, cleaned_base_id, cleaned_table
