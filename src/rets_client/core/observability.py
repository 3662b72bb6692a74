from __future__ import annotations

import logging
from typing import Any, Dict

# Attributes every LogRecord carries, plus the two makeRecord() refuses in `extra`.
RESERVED_LOG_KEYS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime"}


def _event_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in fields.items() if k not in RESERVED_LOG_KEYS}


def log_event(
    event: str,
    logger: logging.Logger | None = None,
    level: int = logging.INFO,
    **fields: Any,
) -> None:
    """Emit a structured event; reserved LogRecord attributes are dropped."""
    log = logger or logging.getLogger("rets_client.observability")
    log.log(level, event, extra={"event": event, **_event_fields(fields)})


__all__ = ["log_event", "RESERVED_LOG_KEYS"]
