from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Environment-driven application configuration."""

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    APP_NAME: str = "Controle de Estoque"
    APP_ENV: str = "dev"
    API_PREFIX: str = "/api"

    DB_URL: str = Field(default="sqlite:///./estoque.db", validation_alias="DATABASE_URL")

    JWT_SECRET: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    # 8 hours, same lifetime as the login cookie
    JWT_ACCESS_TTL_MIN: int = 480
    AUTH_COOKIE_NAME: str = "token"
    BCRYPT_ROUNDS: int = 12

    # Comma separated, e.g. "http://localhost:5173,https://estoque.interno"
    ALLOWED_ORIGINS: str = ""

    LOG_LEVEL: str = "INFO"
    METRICS_ENABLED: bool = True

    SEED_ADMIN: bool = True
    ADMIN_LOGIN: str = "admin"
    ADMIN_PASSWORD: str = "senha123"
    ADMIN_NAME: str = "Administrador Sistema"

    @property
    def allowed_origins(self) -> list[str]:
        return [item.strip() for item in self.ALLOWED_ORIGINS.split(",") if item.strip()]

    @property
    def cookie_secure(self) -> bool:
        return self.APP_ENV.lower() == "production"

    @property
    def cookie_max_age(self) -> int:
        return self.JWT_ACCESS_TTL_MIN * 60


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    return AppSettings()


settings = get_settings()
