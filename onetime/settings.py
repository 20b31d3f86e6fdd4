from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    app_env: str = "dev"
    log_level: str = "INFO"

    # Infra
    redis_url: str = "redis://redis:6379/0"
    otp_data_dir: str = "./data"

    # Ephemeral OTPs
    otp_key_prefix: str = "otp-"
    otp_length: int = 6
    otp_ttl_seconds: int = 480
    otp_consume_on_success: bool = False

    # Password cards
    card_code_length: int = 6

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
