"""
Configuration module for the signing service.

Centralizes all configuration with environment variable support
and validation.
"""

import os
from dataclasses import dataclass
from typing import Optional

from .errors import ConfigurationError

# ============================================================
# Environment Configuration
# ============================================================

ENV = os.getenv("SIGNING_SERVICE_ENV", "dev")  # dev|stage|prod

# HTTP listener
HOST = os.getenv("SIGNING_SERVICE_HOST", "0.0.0.0")
PORT = int(os.getenv("SIGNING_SERVICE_PORT", "8080"))

# Key generation
RSA_KEY_SIZE = int(os.getenv("RSA_KEY_SIZE", "2048"))
MIN_RSA_KEY_SIZE = 2048

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_JSON = os.getenv("LOG_JSON", "true").lower() in ("1", "true", "yes")
LOG_FILE = os.getenv("LOG_FILE") or None

API_VERSION = "v0"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


# ============================================================
# Settings Snapshot
# ============================================================

@dataclass(frozen=True)
class Settings:
    """Immutable snapshot of the service configuration."""
    env: str = "dev"
    host: str = "0.0.0.0"
    port: int = 8080
    rsa_key_size: int = 2048
    log_level: str = "INFO"
    log_json: bool = True
    log_file: Optional[str] = None


def load_settings() -> Settings:
    """
    Build a Settings snapshot from the current environment.

    Reads the environment at call time, so tests may patch os.environ
    before calling.
    """
    settings = Settings(
        env=os.getenv("SIGNING_SERVICE_ENV", ENV),
        host=os.getenv("SIGNING_SERVICE_HOST", HOST),
        port=int(os.getenv("SIGNING_SERVICE_PORT", str(PORT))),
        rsa_key_size=int(os.getenv("RSA_KEY_SIZE", str(RSA_KEY_SIZE))),
        log_level=os.getenv("LOG_LEVEL", LOG_LEVEL).upper(),
        log_json=os.getenv("LOG_JSON", "true" if LOG_JSON else "false").lower() in ("1", "true", "yes"),
        log_file=os.getenv("LOG_FILE") or LOG_FILE,
    )
    validate_settings(settings)
    return settings


# ============================================================
# Validation
# ============================================================

def validate_settings(settings: Settings) -> Settings:
    """
    Validate a Settings snapshot.

    Raises:
        ConfigurationError: If a value is out of range
    """
    if settings.rsa_key_size < MIN_RSA_KEY_SIZE:
        raise ConfigurationError("RSA_KEY_SIZE", f"must be at least {MIN_RSA_KEY_SIZE}")
    if settings.log_level.upper() not in _LOG_LEVELS:
        raise ConfigurationError("LOG_LEVEL", f"must be one of {', '.join(_LOG_LEVELS)}")
    if not 0 < settings.port < 65536:
        raise ConfigurationError("SIGNING_SERVICE_PORT", "must be between 1 and 65535")
    return settings


# ============================================================
# Feature Flags
# ============================================================

def is_debug() -> bool:
    """Check if debug mode is enabled."""
    return os.getenv("SIGNING_SERVICE_DEBUG", "").lower() in ("1", "true", "yes")
