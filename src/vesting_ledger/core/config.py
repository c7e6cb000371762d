"""
Vault configuration.

Values come from environment variables so the same build can run in
development, staging and production without code changes.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

_VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


def _get_bool(env_var: str, default: bool) -> bool:
    raw = os.getenv(env_var, "").strip().lower()
    if not raw:
        return default
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{env_var} must be a boolean flag, got {raw!r}")


def _get_log_level(env_var: str, default: str) -> str:
    level = os.getenv(env_var, default).strip().upper() or default
    if level not in _VALID_LOG_LEVELS:
        raise ConfigurationError(
            f"{env_var} must be one of {', '.join(_VALID_LOG_LEVELS)}, got {level!r}"
        )
    return level


@dataclass(frozen=True)
class VaultSettings:
    """
    Runtime settings for a LinearVestingVault.

    rollback_on_transfer_failure: when the token collaborator rejects the
    transfer that follows a committed state change, undo that state change
    (default). Disabling it keeps the committed change and only raises.
    """

    environment: str = "production"
    log_level: str = "INFO"
    log_file: str = ""
    rollback_on_transfer_failure: bool = True

    @classmethod
    def from_env(cls) -> "VaultSettings":
        """Build settings from VESTING_* environment variables."""
        settings = cls(
            environment=os.getenv("VESTING_ENVIRONMENT", "production").strip() or "production",
            log_level=_get_log_level("VESTING_LOG_LEVEL", "INFO"),
            log_file=os.getenv("VESTING_LOG_FILE", "").strip(),
            rollback_on_transfer_failure=_get_bool("VESTING_ROLLBACK_ON_TRANSFER_FAILURE", True),
        )
        if not settings.rollback_on_transfer_failure:
            logger.warning(
                "Transfer rollback disabled; failed transfers will keep committed state",
                extra={"event": "config.rollback_disabled", "environment": settings.environment},
            )
        return settings
