from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # API Keys
    GEMINI_API_KEY: Optional[str] = None

    # Model settings
    GEMINI_MODEL: str = "gemini-2.5-pro"

    # Storage: in-memory unless a SQLite path is given
    SCRIPT_DB_PATH: Optional[str] = None
    RECENT_SCRIPTS_LIMIT: int = 10

    # Server settings
    CORS_ORIGINS: List[str] = ["*"]
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=True
    )


# Create global settings instance
settings = Settings()
