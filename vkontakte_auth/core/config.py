from __future__ import annotations

import os
from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseAppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "vkontakte-auth"
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "plain"

    # VK.com OAuth 2.0 application
    VK_CLIENT_ID: str | None = None
    VK_CLIENT_SECRET: str | None = None
    VK_CALLBACK_URL: str | None = None
    VK_SCOPE: list[str] = []
    VK_API_VERSION: str | None = None  # None keeps the strategy default
    VK_LANG: str | None = None
    VK_PHOTO_SIZE: int | None = None
    VK_PROFILE_FIELDS: list[str] = []
    OAUTH_HTTP_TIMEOUT: float = 10.0

    @field_validator("VK_CLIENT_ID", mode="before")
    @classmethod
    def coerce_client_id_to_str(cls, v):
        """Convert the numeric VK app id to string."""
        if v is None:
            return v
        return str(v)

    @model_validator(mode="after")
    def _validate_required_fields(self) -> BaseAppSettings:
        required_in_prod = (
            "VK_CLIENT_ID",
            "VK_CLIENT_SECRET",
            "VK_CALLBACK_URL",
        )
        if self.ENV.lower() == "prod":
            missing = [name for name in required_in_prod if not getattr(self, name)]
            if missing:
                raise ValueError(f"Missing required production settings: {', '.join(missing)}")
            if not self.VK_CALLBACK_URL.startswith("https://"):
                raise ValueError("VK_CALLBACK_URL must use https in production")
        return self


class DevSettings(BaseAppSettings):
    ENV: str = "dev"
    VK_CALLBACK_URL: str | None = "http://localhost:8000/auth/vkontakte/callback"


class TestSettings(BaseAppSettings):
    ENV: str = "test"
    VK_CLIENT_ID: str | None = "123456"
    VK_CLIENT_SECRET: str | None = "test-vk-secret"
    VK_CALLBACK_URL: str | None = "http://testserver/auth/vkontakte/callback"


class ProdSettings(BaseAppSettings):
    ENV: str = "prod"
    LOG_FORMAT: str = "json"


_ENV_TO_SETTINGS: dict[str, type[BaseAppSettings]] = {
    "dev": DevSettings,
    "development": DevSettings,
    "test": TestSettings,
    "testing": TestSettings,
    "prod": ProdSettings,
    "production": ProdSettings,
}


@lru_cache
def get_settings() -> BaseAppSettings:
    env_name = os.getenv("APP_ENV") or os.getenv("ENV") or "dev"
    env = env_name.lower()
    settings_cls = _ENV_TO_SETTINGS.get(env, DevSettings)
    return settings_cls()


settings = get_settings()
