from __future__ import annotations

import json
import logging
import sys
from typing import Any

_configured = False

# LogRecord attributes that carry activity context when passed via ``extra``.
_CONTEXT_FIELDS = ("activity_id", "activity_type", "dispatch")


def _build_json_formatter() -> logging.Formatter:
    class JsonFormatter(logging.Formatter):
        def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
            payload: dict[str, Any] = {
                "level": record.levelname,
                "name": record.name,
                "message": record.getMessage(),
            }
            for field in _CONTEXT_FIELDS:
                value = getattr(record, field, None)
                if value is not None:
                    payload[field] = value
            if record.exc_info:
                payload["exc_info"] = self.formatException(record.exc_info)
            return json.dumps(payload, ensure_ascii=False, default=str)

    return JsonFormatter()


def setup_logging(json_logs: bool = False, level: int = logging.INFO) -> None:
    global _configured
    if _configured:
        return

    handler = logging.StreamHandler(sys.stderr)
    formatter: logging.Formatter
    if json_logs:
        formatter = _build_json_formatter()
    else:
        formatter = logging.Formatter(fmt="%(levelname)s | %(name)s | %(message)s")
    handler.setFormatter(formatter)

    root = logging.getLogger("cardfix")
    root.handlers.clear()
    root.setLevel(level)
    root.addHandler(handler)
    root.propagate = False

    _configured = True


def get_logger(name: str) -> logging.Logger:
    if name.startswith("cardfix"):
        return logging.getLogger(name)
    return logging.getLogger(f"cardfix.{name}")
