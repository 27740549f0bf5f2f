"""Logging utilities for Boardpilot.

This module centralizes logger configuration and the structured log helpers
used at the action surface.
"""

import json
import logging
import uuid
from typing import Optional


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger, configuring a console handler on first use."""
    logger_name = name or "boardpilot"
    logger = logging.getLogger(logger_name)

    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )

    return logger


def generate_request_id() -> str:
    """Generate a unique request identifier for correlating logs."""

    return str(uuid.uuid4())


def _format_action_message(msg: str) -> str:
    return f"[BOARDPILOT] {msg}"


def _format_structured_message(
    message: str,
    request_id: Optional[str] = None,
    extra: Optional[dict] = None,
) -> str:
    """Format a log message as a JSON structured string."""

    payload: dict = {"message": message}
    if request_id is not None:
        payload["request_id"] = request_id
    if extra:
        payload["extra"] = extra
    return json.dumps(payload, default=str)


def log_info(msg: str, request_id: Optional[str] = None, **extra: object) -> None:
    """Log an informational message for action activity."""

    structured = _format_structured_message(
        _format_action_message(msg),
        request_id=request_id,
        extra=extra or None,
    )
    get_logger("boardpilot.actions").info(structured)


def log_warn(msg: str, request_id: Optional[str] = None, **extra: object) -> None:
    """Log a warning message for action activity."""

    structured = _format_structured_message(
        _format_action_message(msg),
        request_id=request_id,
        extra=extra or None,
    )
    get_logger("boardpilot.actions").warning(structured)


def log_error(msg: str, request_id: Optional[str] = None, **extra: object) -> None:
    """Log an error message for action activity."""

    structured = _format_structured_message(
        _format_action_message(msg),
        request_id=request_id,
        extra=extra or None,
    )
    get_logger("boardpilot.actions").error(structured)
