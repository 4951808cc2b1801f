# vibecheck/config.py
from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    """Application configuration using Pydantic settings"""

    # App Info
    APP_NAME: str = "Vibe Check Movies"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    PORT: int = 3002

    # Database
    DATABASE_URL: str = "sqlite:///./movies.db"

    # CORS
    ALLOWED_ORIGINS: List[str] = ["*"]

    # Movie metadata (TMDB)
    TMDB_API_KEY: Optional[str] = None  # Quiz endpoint returns 503 when missing
    TMDB_BASE_URL: str = "https://api.themoviedb.org/3"
    TMDB_IMAGE_BASE: str = "https://image.tmdb.org/t/p/w500"
    TMDB_TIMEOUT_SECONDS: float = 10.0
    QUIZ_SIZE: int = 15

    # Completion service (OpenAI-compatible chat completions)
    SYNTHETIC_API_KEY: Optional[str] = None  # Results fall back to placeholders when missing
    AI_MODEL: str = "hf:moonshotai/Kimi-K2-Instruct-0905"
    COMPLETION_API_BASE: str = "https://api.synthetic.new/v1"
    COMPLETION_MAX_TOKENS: int = 2000
    COMPLETION_TEMPERATURE: float = 0.8
    COMPLETION_TIMEOUT_SECONDS: float = 90.0

    # Retention
    SESSION_TTL_SECONDS: int = 24 * 60 * 60
    CLEANUP_INTERVAL_SECONDS: int = 60 * 60

    # Rate limiting (per client IP)
    RATE_LIMIT_MAX_REQUESTS: int = 100
    RATE_LIMIT_WINDOW_SECONDS: int = 15 * 60
    CREATE_SESSION_MAX_REQUESTS: int = 20
    CREATE_SESSION_WINDOW_SECONDS: int = 60 * 60

    # Built client bundle and log files
    STATIC_DIR: str = "../client/dist"
    LOG_DIR: str = "./logs"

    class Config:
        env_file = ".env"
        case_sensitive = True

# Singleton instance
settings = Settings()
