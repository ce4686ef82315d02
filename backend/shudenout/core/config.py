from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(case_sensitive=False, extra="ignore", populate_by_name=True)

    app_name: str = "Shudenout Hotel Search"
    environment: str = Field("local", validation_alias="ENVIRONMENT")
    log_level: str = Field("INFO", validation_alias="LOG_LEVEL")

    rakuten_app_id: str | None = Field(None, validation_alias="RAKUTEN_APP_ID")
    rakuten_affiliate_id: str | None = Field(None, validation_alias="RAKUTEN_AFFILIATE_ID")
    rakuten_base_url: str = Field(
        "https://app.rakuten.co.jp/services/api/Travel", validation_alias="RAKUTEN_BASE_URL"
    )
    runtime_safe_mode: bool = Field(False, validation_alias="RUNTIME_SAFE_MODE")

    upstream_timeout_ms: int = Field(5000, validation_alias="UPSTREAM_TIMEOUT_MS")
    upstream_retries: int = Field(1, validation_alias="UPSTREAM_RETRIES")
    upstream_base_delay_ms: int = Field(300, validation_alias="UPSTREAM_BASE_DELAY_MS")
    breaker_threshold: int = Field(3, validation_alias="BREAKER_THRESHOLD")
    breaker_cooldown_ms: int = Field(60000, validation_alias="BREAKER_COOLDOWN_MS")

    search_timezone: str = Field("Asia/Tokyo", validation_alias="SEARCH_TIMEZONE")
    default_area: str = Field("shinjuku", validation_alias="DEFAULT_AREA")
    backend_url: str = Field("http://localhost:8000", validation_alias="BACKEND_URL")


@lru_cache()
def get_settings() -> Settings:
    load_dotenv(".env")
    return Settings()


settings = get_settings()
