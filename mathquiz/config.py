"""Application configuration module."""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # Database settings
    DATABASE_URL: str = "sqlite+aiosqlite:///./mathquiz.db"
    SQL_ECHO: bool = False

    # Logging settings
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False
    LOG_FILE: str = ""

    # API settings
    API_PREFIX: str = "/api"
    PROJECT_NAME: str = "MathQuiz"
    FRONTEND_URL: str = "*"

    # Question generation (any OpenAI-compatible chat completions endpoint)
    AI_API_KEY: str = ""
    AI_API_BASE: str = "https://api.deepseek.com"
    AI_MODEL_NAME: str = "deepseek-chat"
    AI_TEMPERATURE: float = 0.8
    AI_TIMEOUT: float = 30.0

    # Game sessions (seconds of inactivity before a session is dropped, 0 disables)
    SESSION_IDLE_TIMEOUT: float = 1800.0

    # Progress storage
    PROGRESS_HISTORY_LIMIT: int = 50

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level"""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()

    @property
    def cors_origins(self) -> list:
        """Origins allowed by the CORS middleware"""
        return [origin.strip() for origin in self.FRONTEND_URL.split(",") if origin.strip()]


# Create global settings instance
settings = Settings()
