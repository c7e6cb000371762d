"""
Structured JSON logging for the vesting vault.

Every module logs through logging.getLogger(__name__) with an
extra={"event": ...} tag; this module only decides where those records go
and how they are rendered.

Usage:
    from vesting_ledger.core.config import VaultSettings
    from vesting_ledger.core.logging_config import setup_from_settings

    setup_from_settings(VaultSettings.from_env())
"""

import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from pythonjsonlogger import jsonlogger

from .config import VaultSettings

ROOT_LOGGER = "vesting_ledger"


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter adding timestamp, environment, service and source location."""

    def __init__(self, environment: str = "production", service_name: str = ROOT_LOGGER):
        super().__init__(fmt="%(timestamp)s %(level)s %(name)s %(message)s")
        self.environment = environment
        self.service_name = service_name

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record.setdefault(
            "timestamp",
            datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace("+00:00", "Z"),
        )
        if not log_record.get("level"):
            log_record["level"] = record.levelname.lower()
        log_record["environment"] = self.environment
        log_record["service"] = self.service_name
        log_record["source"] = {
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }


def _file_handler(log_file: str, max_bytes: int, backup_count: int) -> Optional[logging.Handler]:
    path = Path(log_file)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        return logging.handlers.RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backup_count)
    except OSError as e:
        logging.getLogger(__name__).warning(
            "Could not open log file %s: %s",
            log_file,
            e,
            extra={"event": "logging.file_handler_failed"},
        )
        return None


def setup_logging(
    name: str = ROOT_LOGGER,
    log_file: Optional[str] = None,
    level: str = "INFO",
    environment: str = "production",
    enable_console: bool = True,
    max_bytes: int = 100 * 1024 * 1024,  # 100MB
    backup_count: int = 10,
) -> logging.Logger:
    """
    Attach JSON handlers to the named logger, replacing any it already has.

    Child loggers (vesting_ledger.core.*) propagate into it, so configuring
    the package root is enough for the whole vault.

    Args:
        name: Logger to configure
        log_file: Rotating JSON log file; skipped when empty
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        environment: Environment identifier stamped on every record
        enable_console: Also write to stdout
        max_bytes: Size at which the log file rotates
        backup_count: Rotated files to keep
    """
    numeric_level = getattr(logging, level.upper())
    logger = logging.getLogger(name)
    logger.setLevel(numeric_level)
    logger.handlers = []

    handlers: List[logging.Handler] = []
    if enable_console:
        handlers.append(logging.StreamHandler(sys.stdout))
    if log_file:
        file_handler = _file_handler(log_file, max_bytes, backup_count)
        if file_handler is not None:
            handlers.append(file_handler)

    formatter = CustomJsonFormatter(environment=environment, service_name=name.split(".")[0])
    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def setup_from_settings(settings: VaultSettings, name: str = ROOT_LOGGER) -> logging.Logger:
    """Configure logging from VaultSettings (see VaultSettings.from_env)."""
    return setup_logging(
        name=name,
        log_file=settings.log_file or None,
        level=settings.log_level,
        environment=settings.environment,
    )
