from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings
from typing import List, Optional
from functools import lru_cache

class Settings(BaseSettings):
    """
    Application settings loaded from environment variables or a .env file.
    """
    # MongoDB Configuration
    MONGO_URI: str = "mongodb://localhost:27017"
    MONGO_DB_NAME: str = "rentWheelsDB"
    MONGO_SERVER_SELECTION_TIMEOUT_MS: int = 5000

    # Firebase Configuration
    # Base64-encoded service account JSON, takes precedence over the file path
    FIREBASE_SERVICE_KEY: Optional[SecretStr] = None
    GOOGLE_CLOUD_PROJECT: Optional[str] = None
    # For local development, path to service account key json file
    GOOGLE_APPLICATION_CREDENTIALS: Optional[str] = None
    FIREBASE_CHECK_REVOKED: bool = False

    # Marketplace behaviour
    FEATURED_CARS_LIMIT: int = Field(6, gt=0)
    # Restrict car PATCH/DELETE to the listing's provider
    ENFORCE_CAR_OWNERSHIP: bool = False

    CORS_ORIGINS: List[str] = ["*"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_RICH: bool = True

    class Config:
        env_file = ".env"
        env_file_encoding = 'utf-8'

@lru_cache()
def get_settings() -> Settings:
    """
    Returns a cached instance of the Settings object.
    """
    return Settings()
