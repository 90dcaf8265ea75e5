from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    # Database (required, no default)
    database_url: str
    db_pool_size: int = 5
    db_echo: bool = False

    # JWT (required, no default)
    jwt_secret: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 120

    # Password hashing cost factor
    bcrypt_rounds: int = 10

    # Server
    cors_origin: str = "*"
    port: int = 5000
    environment: Literal["development", "production", "test"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origin.split(",") if o.strip()]

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
