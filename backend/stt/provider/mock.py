"""Mock Capture Provider — records start/stop calls for testing."""
import logging
from typing import List, Tuple

from stt.provider.interface import CaptureProvider

logger = logging.getLogger(__name__)


class MockCaptureProvider(CaptureProvider):
    """Never produces audio. Tests feed utterances to the orchestrator directly."""

    def __init__(self):
        self.calls: List[Tuple[str, str]] = []
        self.listening = False

    async def start_capture(self, session_id: str) -> None:
        logger.info("[STT:MOCK] start_capture session=%s", session_id)
        self.calls.append(("start", session_id))
        self.listening = True

    async def stop_capture(self, session_id: str) -> None:
        logger.info("[STT:MOCK] stop_capture session=%s", session_id)
        self.calls.append(("stop", session_id))
        self.listening = False
