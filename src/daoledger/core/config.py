"""
daoledger configuration

All runtime settings come from environment variables with safe defaults.
Protocol constants (vote cost, voting period) live in
daoledger.core.constants and are not configurable.
"""

from __future__ import annotations

import hashlib
import logging
import os
from pathlib import Path

from daoledger.core.constants import DEFAULT_HASH_ALGORITHM
from daoledger.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _get_bool(env_var: str, default: str) -> bool:
    raw = os.getenv(env_var, default).strip().lower()
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off", ""):
        return False
    raise ConfigurationError(
        f"{env_var} must be a boolean flag (1/0), got {raw!r}",
        details={"env_var": env_var},
    )


def _get_log_level(env_var: str, default: str) -> str:
    level = os.getenv(env_var, default).strip().upper()
    if level not in _VALID_LOG_LEVELS:
        raise ConfigurationError(
            f"{env_var} must be one of {', '.join(_VALID_LOG_LEVELS)}, got {level!r}",
            details={"env_var": env_var},
        )
    return level


def validate_hash_algorithm(name: str) -> str:
    """Check that name is a hashlib algorithm with a fixed digest size."""
    normalized = name.strip().lower()
    if normalized not in hashlib.algorithms_available:
        raise ConfigurationError(
            f"Unknown hash algorithm {name!r}",
            details={"algorithm": name},
        )
    if hashlib.new(normalized).digest_size == 0:
        # shake_* variable-length digests cannot bind a commitment
        raise ConfigurationError(
            f"Hash algorithm {name!r} has no fixed digest size",
            details={"algorithm": name},
        )
    return normalized


ENVIRONMENT = os.getenv("DAOLEDGER_ENVIRONMENT", "development").strip() or "development"
LOG_LEVEL = _get_log_level("DAOLEDGER_LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("DAOLEDGER_LOG_FILE", "").strip()
STATE_FILE = os.getenv(
    "DAOLEDGER_STATE_FILE",
    os.path.join(Path.home(), ".daoledger", "state.json"),
)
METRICS_ENABLED = _get_bool("DAOLEDGER_METRICS_ENABLED", "1")
HASH_ALGORITHM = validate_hash_algorithm(
    os.getenv("DAOLEDGER_HASH_ALGORITHM", DEFAULT_HASH_ALGORITHM)
)


class Config:
    """Resolved runtime configuration."""

    ENVIRONMENT = ENVIRONMENT
    LOG_LEVEL = LOG_LEVEL
    LOG_FILE = LOG_FILE
    STATE_FILE = STATE_FILE
    METRICS_ENABLED = METRICS_ENABLED
    HASH_ALGORITHM = HASH_ALGORITHM


__all__ = [
    "Config",
    "ConfigurationError",
    "ENVIRONMENT",
    "LOG_LEVEL",
    "LOG_FILE",
    "STATE_FILE",
    "METRICS_ENABLED",
    "HASH_ALGORITHM",
    "validate_hash_algorithm",
]
