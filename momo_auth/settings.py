from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    app_env: str = "dev"
    log_level: str = "INFO"

    # Infra
    database_url: str = "postgresql://app:app@db:5432/app"
    db_pool_min_size: int = 1
    db_pool_max_size: int = 10
    redis_url: str = "redis://redis:6379/0"
    sms_base_url: str = "http://sms-mock:8026"

    # Mobile one-time codes
    auth_code_backend: Literal["redis", "postgres"] = "redis"
    auth_code_ttl_seconds: int = 300
    auth_code_max_attempts: int = 5
    auth_code_issue_budget_seconds: float = 2.0
    auth_code_sweep_interval_seconds: int = 60
    mobile_redirect_schemes: list[str] = ["sherpamomo://", "exp://"]

    # Phone sign-in
    phone_code_ttl_seconds: int = 300
    phone_code_max_attempts: int = 5

    # Rate limits (per client IP, slowapi/limits syntax)
    rate_limit_enabled: bool = True
    rate_limit_storage_uri: str = "memory://"
    rate_limit_phone_request: str = "3/minute"
    rate_limit_phone_verify: str = "10/15minute"
    rate_limit_mobile_code: str = "10/minute"

    # Sessions
    session_ttl_seconds: int = 7 * 24 * 3600

    # Worker
    outbox_poll_interval_ms: int = 500
    outbox_batch_size: int = 10
    outbox_max_attempts: int = 8

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
