"""
Configuration settings for the application
"""

import os
from typing import List
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Application settings"""

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./seating_plans.db")

    # Security
    ADMIN_TOKEN: str = os.getenv("ADMIN_TOKEN", "admin_token_123")

    # CORS
    ALLOW_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5000",
        "http://localhost:8000",
    ]

    # File limits
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024  # 10MB

    # Rate limiting
    RATE_LIMIT_PER_MINUTE: int = 30

    # Floor plan geometry
    GUEST_RADIUS: float = 15.0
    DEFAULT_TABLE_CAPACITY: int = 8

    # Plus-ones a single guest list row may bring
    MAX_ADDITIONAL_GUESTS: int = 50

    # Seconds between marking an item for deletion and committing it
    DELETE_COMMIT_DELAY_SECONDS: float = 0.5

    # Snapshot format
    SNAPSHOT_VERSION: int = 2

    class Config:
        env_file = ".env"

settings = Settings()
