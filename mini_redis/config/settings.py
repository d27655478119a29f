"""
Mini-Redis Configuration Settings

This module contains all configuration constants for the Mini-Redis engine.
Network and logging values can be overridden through environment variables;
the storage and protocol limits are fixed.
"""

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Engine configuration settings."""

    # Network settings
    HOST: str = os.environ.get("MINI_REDIS_HOST", "0.0.0.0")
    PORT: int = int(os.environ.get("MINI_REDIS_PORT", "6379"))
    LISTEN_BACKLOG: int = 10
    READ_BUFFER_SIZE: int = 8192

    # Storage settings
    INITIAL_BUCKETS: int = int(os.environ.get("MINI_REDIS_INITIAL_BUCKETS", "64"))
    LOAD_FACTOR_THRESHOLD: float = 0.75
    MAX_KEY_LENGTH: int = 256  # bytes
    MAX_VALUE_LENGTH: int = 4096  # bytes

    # Protocol settings
    MAX_TOKENS: int = 10

    # Logging settings
    DEBUG: bool = os.environ.get("MINI_REDIS_DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.environ.get("MINI_REDIS_LOG_LEVEL", "INFO")


# Global settings instance
settings = Settings()
