from pydantic_settings import BaseSettings
from typing import Optional

class Settings(BaseSettings):
    # Application
    PROJECT_NAME: str = "Guest List"
    VERSION: str = "1.0.0"
    API_PREFIX: str = "/api"
    DEBUG: bool = False
    ENVIRONMENT: str = "production"
    CORS_ORIGINS: list = ["*"]

    # Database
    DATABASE_URL: str = "sqlite:///./guestlist.db"

    # Security
    SESSION_SECRET: str = "default-secret-change-me"
    SESSION_COOKIE_NAME: str = "auth_session"
    COOKIE_SECURE: bool = False  # set True behind HTTPS
    RESET_TOKEN_EXPIRE_MINUTES: int = 60
    MIN_PASSWORD_LENGTH: int = 8
    ADMIN_EMAIL: str = "admin@example.com"
    BASE_URL: str = "http://localhost:8000"

    # Guest lists
    SLUG_LENGTH: int = 10
    DEFAULT_MAX_PER_SIGNUP: int = 10
    BATCH_DEFAULT_GUEST_CAP: int = 75

    # Email (password reset)
    SMTP_SERVER: str = ""
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM_NAME: str = "Guest List"
    SMTP_FROM_EMAIL: Optional[str] = None

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = "app.log"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

settings = Settings()
