"""Playback channel — the orchestrator's only outbound call for speech.

speak(text) starts playback and returns. Whoever observes the audio output
reports the end through TurnOrchestrator.on_playback_complete() or
on_playback_error(). An exception from speak() counts as a playback error.
"""
import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional

from tts.provider.interface import TTSProvider, TTSResult

logger = logging.getLogger(__name__)

AudioSink = Callable[[TTSResult], Awaitable[None]]


class PlaybackChannel(ABC):

    @abstractmethod
    async def speak(self, text: str) -> None:
        ...


class SynthesizedPlayback(PlaybackChannel):
    """Synthesizes with a TTSProvider and hands the audio to ``sink``."""

    def __init__(self, tts: TTSProvider, sink: AudioSink, voice: Optional[str] = None):
        self.tts = tts
        self.sink = sink
        self.voice = voice

    async def speak(self, text: str) -> None:
        result = await self.tts.synthesize(text, voice=self.voice)
        logger.info("[Playback] %d bytes format=%s mock=%s text='%s'",
                    len(result.audio_bytes), result.format, result.is_mock, text[:50])
        await self.sink(result)
