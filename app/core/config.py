"""
Configuration settings for the application
"""

import os
from typing import List
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Application settings"""

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./orders.db")

    # Security
    ADMIN_TOKEN: str = os.getenv("ADMIN_TOKEN", "admin_token_123")
    REQUIRE_ADMIN_AUTH: bool = os.getenv("REQUIRE_ADMIN_AUTH", "false").lower() in ("1", "true", "yes")

    # Application
    BASE_URL: str = os.getenv("BASE_URL", "http://localhost:5000")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Order lifecycle policies
    STATUS_TRANSITION_POLICY: str = os.getenv("STATUS_TRANSITION_POLICY", "permissive")  # permissive, forward_only
    CASCADE_EVENTS_ON_SESSION_DELETE: bool = False
    PERSIST_INTERACTION_EVENTS: bool = False

    # Query caps
    ADMIN_SNAPSHOT_LIMIT: int = 100
    EVENT_HISTORY_LIMIT: int = 100

    # CORS
    ALLOW_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5000",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5000",
    ]

    class Config:
        env_file = ".env"

settings = Settings()
