"""Application settings read from environment variables"""
import os
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

# Searches the current dir and parents for a .env file
load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


@dataclass
class Settings:
    """Runtime configuration. Build your own instance in tests."""

    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    cors_origins: List[str] = field(
        default_factory=lambda: [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
    )
    max_body_size: int = int(os.getenv("MAX_BODY_SIZE", str(1 * 1024 * 1024)))  # 1MB
    # slowapi limit string, e.g. "15/minute". Empty disables rate limiting.
    rate_limit: str = os.getenv("RATE_LIMIT", "")
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "8000"))
    reload: bool = _env_bool("RELOAD")


settings = Settings()
