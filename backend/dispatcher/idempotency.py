"""Idempotency — prevents duplicate dispatch.

Keys:
  build: {session_id}:build            (once per session lifetime)
  edit:  {session_id}:edit:{turn_no}   (once per triggering turn)

Records live on the Session itself; nothing outlives the session.
"""
import logging
from typing import Any, Dict, Optional

from dialogue.session import Session
from schemas.commands import BuildCommand, Command

logger = logging.getLogger(__name__)


def idempotency_key(session: Session, command: Command, turn_no: int) -> str:
    if isinstance(command, BuildCommand):
        return f"{session.session_id}:build"
    return f"{session.session_id}:edit:{turn_no}"


def check_idempotency(session: Session, key: str) -> Optional[Dict[str, Any]]:
    """Return the earlier dispatch record if ``key`` was already used."""
    return session.dispatches.get(key)


def record_dispatch(session: Session, key: str, record: Dict[str, Any]) -> None:
    record["idempotency_key"] = key
    session.dispatches[key] = record
    logger.info("Dispatch recorded: key=%s status=%s", key, record.get("status"))
