"""
Configuration settings for the site bundle engine
"""
import logging
from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

load_dotenv()

# Configure basic logger for config module
logger = logging.getLogger(__name__)

DEFAULT_STATIC_DIR = str(Path(__file__).resolve().parent / "public")


class Settings(BaseSettings):
    """Application settings, built once at startup and never mutated"""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
        frozen=True,
    )

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    # Server
    PORT: int = 3000
    STATIC_DIR: str = DEFAULT_STATIC_DIR

    # Completion API
    GEMINI_API_URL: str = ""
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-default"

    # Generation Settings
    MAX_TOKENS: int = 2000
    UPSTREAM_TIMEOUT: float = 30.0

    # Monitoring
    SENTRY_DSN: Optional[str] = None
    SENTRY_ENVIRONMENT: str = "development"
    SENTRY_TRACES_SAMPLE_RATE: float = 0.1

    # CORS - comma-separated list of allowed origins
    CORS_ORIGINS: str = "*"

    @property
    def upstream_configured(self) -> bool:
        return bool(self.GEMINI_API_URL and self.GEMINI_API_KEY)

    @property
    def allowed_origins(self) -> list:
        return [
            origin.strip()
            for origin in self.CORS_ORIGINS.split(",")
            if origin.strip()
        ]


def get_settings() -> Settings:
    """Read settings from the environment"""
    return Settings()


def validate_required_config(settings: Settings) -> bool:
    """Report missing configuration on startup.

    A missing endpoint or key does not stop the process; each generate
    request answers with a misconfiguration error instead.
    """
    errors = []

    if not settings.GEMINI_API_URL:
        errors.append("GEMINI_API_URL is not configured")
    if not settings.GEMINI_API_KEY:
        errors.append("GEMINI_API_KEY is not configured")

    for error in errors:
        logger.error(f"Configuration error: {error}")

    return len(errors) == 0
