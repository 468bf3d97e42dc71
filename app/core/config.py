import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        return default


@dataclass(frozen=True)
class LLMServiceConfig:
    """Connection settings for the external LLM analysis service."""

    base_url: str = "http://localhost:3001"
    timeout_ms: int = 30000
    max_retries: int = 2
    retry_delay_ms: int = 1000
    health_timeout_ms: int = 5000

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    @classmethod
    def from_env(cls) -> "LLMServiceConfig":
        return cls(
            base_url=os.getenv("LLM_SERVICE_URL", cls.base_url).rstrip("/"),
            timeout_ms=_int_env("LLM_TIMEOUT", cls.timeout_ms),
            max_retries=max(_int_env("LLM_MAX_RETRIES", cls.max_retries), 0),
            retry_delay_ms=_int_env("LLM_RETRY_DELAY", cls.retry_delay_ms),
            health_timeout_ms=_int_env("LLM_HEALTH_TIMEOUT", cls.health_timeout_ms),
        )


class Settings:
    MONGODB_URI: str = os.getenv(
        "MONGODB_URI", "mongodb://localhost:27017/mental-clarity"
    )
    DB_NAME: Optional[str] = os.getenv("DB_NAME")
    DEFAULT_DB_NAME: str = "mental-clarity"

    FIREBASE_PROJECT_ID: Optional[str] = os.getenv("FIREBASE_PROJECT_ID")

    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    PORT: int = _int_env("PORT", 5000)

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"


settings = Settings()
