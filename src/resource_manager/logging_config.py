"""Logging setup for the Resource Manager service."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from .config import ResourceManagerConfig

# Attributes present on every LogRecord; anything else came in through ``extra=``.
_RECORD_ATTRIBUTES = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message",
    "asctime",
    "taskName",
}


class JsonFormatter(logging.Formatter):
    """Render log records as one JSON object per line."""

    def __init__(self, service: str, environment: str):
        super().__init__()
        self.service = service
        self.environment = environment

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service,
            "environment": self.environment,
        }

        for key, value in vars(record).items():
            if key not in _RECORD_ATTRIBUTES and key not in payload:
                payload[key] = value

        if record.exc_info:
            payload["error"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def configure_logging(config: ResourceManagerConfig) -> logging.Logger:
    """Install a single stream handler on the root logger.

    Safe to call repeatedly (e.g. once per warm Lambda invocation); the
    handler installed by a previous call is replaced.
    """
    root = logging.getLogger()
    root.setLevel(config.log_level)

    for handler in list(root.handlers):
        if getattr(handler, "_resource_manager", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    if config.structured_logging:
        handler.setFormatter(JsonFormatter(config.service_name, config.environment))
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
        )
    handler._resource_manager = True  # type: ignore[attr-defined]
    root.addHandler(handler)

    # botocore is chatty at DEBUG
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    return root
