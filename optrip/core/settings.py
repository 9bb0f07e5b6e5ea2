import json
from functools import lru_cache
from typing import Annotated, List
from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        case_sensitive=True,  # Variables are case-sensitive
        env_file=".env",  # Load environment variables from .env file
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API Configuration
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    ALLOWED_ORIGINS: Annotated[List[str], NoDecode] = ["*"]

    # Maps API Keys
    GOOGLE_MAPS_API_KEY: str | None = None

    # Trip defaults used when a request leaves them out
    DEFAULT_MAX_DRIVING_HOURS: float = 8.0
    DEFAULT_STOP_DURATION: int = 60

    # Short link expansion
    SHORT_LINK_TIMEOUT_SECONDS: float = 10.0

    # Base URL used when building shareable trip links
    PUBLIC_BASE_URL: str = "http://localhost:8000"

    # Environment name
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: str | List[str]) -> List[str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, str):
            return json.loads(v)
        elif isinstance(v, list):
            return v
        raise ValueError(v)


@lru_cache()  # Cache the settings object for performance
def get_settings() -> Settings:
    return Settings()
