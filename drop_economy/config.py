"""Application configuration loaded from environment variables and .env file."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    Values are loaded from environment variables first,
    then from a .env file in the project root as fallback.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    DATABASE_URL: str = "sqlite:///./dev.db"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Drop economy
    REWARD_COOLDOWN_SECONDS: int = 86400
    DROP_CHANCE: float = 0.15
    MAX_EQUIPPED_BADGES: int = 10
    MEDIA_LEVEL_THRESHOLD: int = 3
    TRADE_NOTE_MAX_LENGTH: int = 500

    # Seed file for the item catalog, loaded once at startup when set
    CATALOG_SEED_PATH: Optional[str] = None


settings = Settings()
