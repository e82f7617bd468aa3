from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings read from the environment (or a `.env` file in the working directory)"""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # GA4
    ga4_property_id: Optional[str] = Field(default=None)
    ga4_service_name: str = Field(default="GA4Service")
    ga4_key_file: Optional[str] = Field(default=None)
    ga4_timeout: float = Field(default=30)
    ga4_debug: bool = Field(default=False)

    # Telegram
    telegram_bot_token: str = Field(default="")
    telegram_chat_id: str = Field(default="")
    use_proxy: bool = Field(default=False)
    socks5_proxy_url: Optional[str] = Field(default=None)
    telegram_timeout: float = Field(default=15)

    log_level: str = Field(default="INFO")


def get_settings(**overrides) -> Settings:
    return Settings(**overrides)
