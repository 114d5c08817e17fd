# bookshelf/config.py
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

# public placeholder, override with BOOKSHELF_SECRET_KEY
DEFAULT_SECRET_KEY = "your-super-secret-jwt-key-change-in-production"


class Settings(BaseSettings):
    """Application settings, read from BOOKSHELF_* environment variables or .env."""

    database_url: str = "sqlite+aiosqlite:///./library.db"
    database_echo: bool = False
    db_timeout_seconds: float = 5.0

    secret_key: str = DEFAULT_SECRET_KEY
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60

    bcrypt_rounds: int = 10

    log_level: str = "INFO"
    debug: bool = False

    model_config = SettingsConfigDict(
        env_prefix="BOOKSHELF_",
        env_file=".env",
        extra="ignore",
    )

    @property
    def uses_default_secret(self) -> bool:
        return self.secret_key == DEFAULT_SECRET_KEY


@lru_cache()
def get_settings() -> Settings:
    return Settings()
