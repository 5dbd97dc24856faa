"""Dispatcher — delivers commands to the artifact builder, at most once.

Pipeline:
  1. Derive idempotency key (per session for builds, per turn for edits)
  2. Duplicate key → return the earlier record, deliver nothing
  3. Record the key BEFORE delivery, so a failed delivery is never retried
     by a later confirmation
  4. Publish on the command channel
  5. Failure → DispatchError (non-fatal to the session; phase is not rolled back).
     The record keeps how many subscribers got the command ("partial" if any)
"""
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict

from core.exceptions import DispatchError
from dialogue.session import Session
from dispatcher.channel import CommandChannel
from dispatcher.idempotency import check_idempotency, idempotency_key, record_dispatch
from schemas.commands import Command

logger = logging.getLogger(__name__)


class CommandDispatcher:

    def __init__(self, channel: CommandChannel):
        self.channel = channel

    async def dispatch(self, session: Session, command: Command, turn_no: int) -> Dict[str, Any]:
        start = time.monotonic()
        key = idempotency_key(session, command, turn_no)

        existing = check_idempotency(session, key)
        if existing:
            logger.info("[Dispatcher] duplicate suppressed: key=%s", key)
            return existing

        record: Dict[str, Any] = {
            "dispatch_id": str(uuid.uuid4()),
            "session_id": session.session_id,
            "kind": command.kind,
            "turn_no": turn_no,
            "status": "dispatching",
            "timestamp": datetime.now(timezone.utc),
        }
        record_dispatch(session, key, record)

        try:
            deliveries = await self.channel.publish(command.model_copy(update={"command_id": key}))
        except DispatchError as e:
            record["status"] = "partial" if e.delivered else "failed"
            record["deliveries"] = e.delivered
            record["error"] = e.message
            record["latency_ms"] = (time.monotonic() - start) * 1000
            logger.error("[Dispatcher] %s: session=%s kind=%s key=%s deliveries=%d error=%s",
                         record["status"].upper(), session.session_id, command.kind, key,
                         e.delivered, e.message)
            raise

        record["status"] = "delivered"
        record["deliveries"] = deliveries
        record["latency_ms"] = (time.monotonic() - start) * 1000
        logger.info(
            "[Dispatcher] delivered: session=%s kind=%s key=%s deliveries=%d latency=%.0fms",
            session.session_id, command.kind, key, deliveries, record["latency_ms"],
        )
        return record
