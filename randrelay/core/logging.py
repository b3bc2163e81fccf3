"""randrelay.core.logging

Logging setup for the relay process.

Log messages are event names (``commit_submitted``); details travel in
``extra``. Every record passes through the redaction filter before any
handler formats it.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterable
from typing import Any

from randrelay.core.config import LoggingConfig
from randrelay.security.redaction import redact_secrets, sanitize_for_log

ROOT_LOGGER = "randrelay"

_STANDARD_ATTRS = set(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {"message", "asctime"}


def _extras(record: logging.LogRecord) -> dict[str, Any]:
    return {k: v for k, v in record.__dict__.items() if k not in _STANDARD_ATTRS and not k.startswith("_")}


class RedactionFilter(logging.Filter):
    """Scrub secrets from the message, args and extra fields of every record."""

    def __init__(self, known_secrets: Iterable[str] = ()) -> None:
        super().__init__()
        self.known = tuple(s for s in known_secrets if s)

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = redact_secrets(str(record.msg), self.known)
        if isinstance(record.args, tuple):
            record.args = tuple(redact_secrets(a, self.known) if isinstance(a, str) else a for a in record.args)
        extras = _extras(record)
        if extras:
            for k, v in sanitize_for_log(extras, self.known).items():
                setattr(record, k, v)
        return True


class KeyValueFormatter(logging.Formatter):
    """``<time> <level> <logger> <event> k=v ...``"""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)s %(name)s %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        extras = _extras(record)
        if not extras:
            return base
        kv = " ".join(f"{k}={v}" for k, v in sorted(extras.items()))
        return f"{base} {kv}"


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        out: dict[str, Any] = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "logger": record.name,
            "event": record.getMessage(),
        }
        out.update(_extras(record))
        if record.exc_info:
            out["exc"] = self.formatException(record.exc_info)
        return json.dumps(out, default=str, sort_keys=True)


def configure_logging(cfg: LoggingConfig, *, known_secrets: Iterable[str] = ()) -> logging.Logger:
    """Install a single stderr handler on the ``randrelay`` logger.

    Calling it again replaces the handler (tests, CLI re-entry).
    """

    logger = logging.getLogger(ROOT_LOGGER)
    for h in list(logger.handlers):
        logger.removeHandler(h)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter() if cfg.json_output else KeyValueFormatter())
    handler.addFilter(RedactionFilter(known_secrets))
    logger.addHandler(handler)

    level = logging.getLevelName(str(cfg.level).upper())
    if not isinstance(level, int):
        level = logging.INFO
    if cfg.verbose:
        level = min(level, logging.INFO)
    logger.setLevel(level)
    logger.propagate = False
    return logger
