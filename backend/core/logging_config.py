"""Logging setup — one stdout handler, secrets scrubbed on the way out.

ENV=prod  → one JSON object per line
otherwise → plaintext for humans

Session-scoped lines are written as ``session=<id>``; a filter lifts the id
onto the record so the JSON output can carry it as a field.
"""
import json
import logging
import re
import sys
from typing import Optional

from config.settings import get_settings
from observability.redaction import redact

_SESSION_RE = re.compile(r"session=(\S+)")

PLAIN_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

_QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "openai", "elevenlabs")


class SessionFilter(logging.Filter):
    """Attach ``record.session_id`` (or None) parsed from the message."""

    def filter(self, record: logging.LogRecord) -> bool:
        match = _SESSION_RE.search(record.getMessage())
        record.session_id = match.group(1) if match else None
        return True


def _scrub(text: str) -> str:
    return redact(text) if get_settings().LOG_REDACTION_ENABLED else text


class RedactingFormatter(logging.Formatter):

    def format(self, record: logging.LogRecord) -> str:
        return _scrub(super().format(record))


class JSONFormatter(logging.Formatter):

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": self.formatTime(record, DATE_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        session_id = getattr(record, "session_id", None)
        if session_id is None:
            match = _SESSION_RE.search(entry["msg"])
            session_id = match.group(1) if match else None
        if session_id:
            entry["session_id"] = session_id
        if record.exc_info and record.exc_info[0]:
            entry["exception"] = self.formatException(record.exc_info)
        return _scrub(json.dumps(entry, default=str))


def setup_logging(level: Optional[str] = None) -> None:
    settings = get_settings()

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(SessionFilter())
    if settings.ENV == "prod":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(RedactingFormatter(fmt=PLAIN_FORMAT, datefmt=DATE_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
