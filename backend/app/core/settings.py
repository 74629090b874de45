# backend/app/core/settings.py

import os

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # SQLAlchemy database URL
    db_url: str = "sqlite:///./taskcollab.db"

    # Debug mode: colored console logs and verbose SQL logging
    app_debug: bool = True

    # Environment name; "production" hides stack traces in error responses
    environment: str = "dev"

    # Test mode flag (override with TESTING=1)
    testing: bool = False

    # JWT signing
    jwt_secret_key: str = "your_jwt_secret_key"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24

    # Comma separated list of allowed CORS origins
    allowed_origins: str = "http://localhost:3000,http://127.0.0.1:3000"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


settings = Settings()

# Switch to test mode automatically under pytest
if os.getenv("PYTEST_CURRENT_TEST"):
    settings.testing = True
