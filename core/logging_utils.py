"""
core/logging_utils.py

Uniform JSON-lines logging for the quote engine's business events
(credit notes, payments, status changes). The pure calculator never logs.

Public API
----------
- get_logger(name=None) -> logging.Logger
- log_event(logger, op, message, extra: dict = {})
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from typing import Dict, Optional

__all__ = ["get_logger", "log_event"]

_ROOT_LOGGER_NAME = "tradequote"


class _JsonLineFormatter(logging.Formatter):
    """
    {"ts":"2026-01-16T12:00:01.123Z","level":"INFO","name":"tradequote.payments","msg":"...","extra":{...}}
    """

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload = {
            "ts": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
            "level": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        if hasattr(record, "extra_payload") and isinstance(record.extra_payload, dict):
            payload["extra"] = record.extra_payload
        return json.dumps(payload, ensure_ascii=False, default=str)


def _configure_root() -> logging.Logger:
    root = logging.getLogger(_ROOT_LOGGER_NAME)
    # Reuse the same handler across calls
    if root.handlers:
        return root

    level_name = os.environ.get("TRADEQUOTE_LOG_LEVEL", "INFO").upper()
    root.setLevel(getattr(logging, level_name, logging.INFO))
    root.propagate = False

    sh = logging.StreamHandler()
    sh.setFormatter(_JsonLineFormatter())
    root.addHandler(sh)
    return root


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Child of the `tradequote` logger, e.g. get_logger("payments")."""
    root = _configure_root()
    return root.getChild(name) if name else root


def log_event(
    logger: logging.Logger,
    op: str,
    message: str,
    extra: Dict[str, object] | None = None,
    level: int = logging.INFO,
) -> None:
    """
    Log a structured event line.

    Args:
        logger: Obtained from get_logger().
        op: Operation name, e.g. "credit_note" or "payment".
        message: Short human-readable message.
        extra: Additional key/values (ids, amounts, statuses).
        level: Logging level (default INFO).
    """
    extra_payload: Dict[str, object] = {"op": op}
    if extra:
        for k, v in extra.items():
            if k not in extra_payload:
                extra_payload[k] = v

    logger.log(level, message, extra={"extra_payload": extra_payload})
