"""
Settings Configuration

Centralized settings and feature flags for the progress layer.
All values are loaded from environment variables (a local .env file is
honoured via python-dotenv).
"""
import logging
import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def get_bool_env(key: str, default: bool = False) -> bool:
    """Get a boolean value from environment variable."""
    value = os.getenv(key, str(default)).lower()
    return value in ('true', '1', 'yes', 'on', 'enabled')


def get_int_env(key: str, default: Optional[int] = None) -> Optional[int]:
    """Get an integer value from environment variable, or default when unset, blank or malformed."""
    value = os.getenv(key)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Ignoring non-integer {key}={value!r}; using default {default!r}")
        return default


class Settings:
    """
    Settings for the progress/statistics layer.
    
    To add a new setting:
    1. Add it here as a class property
    2. Load it from environment variable
    3. Use it in your code
    """
    
    # Storage
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./learnhub.db")
    DB_ECHO: bool = get_bool_env("DB_ECHO", False)
    
    # Logging (CLI only; library code never configures logging)
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    
    # Final assessment feature gate
    FEATURE_FINAL_ASSESSMENT: bool = get_bool_env("FEATURE_FINAL_ASSESSMENT", True)
    # Unset means a successful table check is remembered for the process lifetime
    SCHEMA_CACHE_TTL_SECONDS: Optional[int] = get_int_env("SCHEMA_CACHE_TTL_SECONDS")


# Singleton instance for easy importing
settings = Settings()
