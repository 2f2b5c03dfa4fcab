"""
Logging utilities for structured logging
"""

import logging
import json
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Sequence, Tuple

# Attributes every LogRecord carries; anything else arrived through ``extra``
_STANDARD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message", "asctime", "taskName", "device_context"}


class JSONFormatter(logging.Formatter):
    """One JSON object per record: level, logger, message, device and event fields"""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        device = getattr(record, "device_context", None)
        if device:
            log_data["device"] = device

        log_data.update(
            (key, value) for key, value in vars(record).items() if key not in _STANDARD_ATTRS)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, ensure_ascii=False, default=str)


class SpeakerContextFilter(logging.Filter):
    """Attach device context to records logged with an ``address`` extra"""

    def filter(self, record: logging.LogRecord) -> bool:
        if hasattr(record, 'address'):
            record.device_context = {
                "address": record.address,
                "room": getattr(record, 'room', None)
            }
        return True


def setup_logging(log_level: str = "INFO", log_format: str = "text",
                  log_file: Optional[str] = None) -> None:
    """
    Setup logging for command line use of the library.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Log format ("json" or "text")
        log_file: Optional log file path
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    root_logger.handlers.clear()

    if log_format.lower() == "json":
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(levelname)s - %(name)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    # stderr keeps command output on stdout clean
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(SpeakerContextFilter())
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        file_handler.addFilter(SpeakerContextFilter())
        root_logger.addHandler(file_handler)

    logging.getLogger('requests').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_action(logger: logging.Logger, address: str, service: str, action: str,
               params: Sequence[Tuple[str, Any]]) -> None:
    """
    Log an outgoing remote action.

    Args:
        logger: Logger instance
        address: Device address
        service: Service type name
        action: Action name
        params: Ordered parameters as sent
    """
    logger.debug(
        f"Sending {service}#{action} to {address}",
        extra={
            "address": address,
            "event_type": "action",
            "service": service,
            "action": action,
            "params": [list(p) for p in params]
        }
    )


def log_cache_event(logger: logging.Logger, address: str, path: str, hit: bool) -> None:
    logger.debug(
        f"Document cache {'hit' if hit else 'miss'} for {path} on {address}",
        extra={
            "address": address,
            "event_type": "cache",
            "path": path,
            "cache_hit": hit
        }
    )


def log_topology_resolved(logger: logging.Logger, address: str, group: str,
                          coordinator: bool, uuid: str) -> None:
    """
    Log a successful topology resolution.

    Args:
        logger: Logger instance
        address: Device address
        group: Group id the speaker belongs to
        coordinator: Whether the speaker leads its group
        uuid: Device unique id
    """
    logger.info(
        f"Resolved topology for {address}: group={group} coordinator={coordinator}",
        extra={
            "address": address,
            "event_type": "topology",
            "group": group,
            "coordinator": coordinator,
            "uuid": uuid
        }
    )


def log_error(logger: logging.Logger, address: str, error: Exception,
              context: Optional[Dict[str, Any]] = None) -> None:
    """
    Log errors with context.

    Args:
        logger: Logger instance
        address: Device address
        error: Exception that occurred
        context: Additional context
    """
    logger.error(
        f"Error occurred: {str(error)}",
        extra={
            "address": address,
            "event_type": "error",
            "error_type": type(error).__name__,
            "error_message": str(error),
            "context": context or {}
        }
    )
