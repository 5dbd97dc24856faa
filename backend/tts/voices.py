"""Voice table — friendly names to ElevenLabs voice ids."""
import re
from typing import Optional

VOICES = {
    "jessa": "yj30vwTGJxSHezdAGsv9",
    "dorothy": "ThT5KcBeYPX3keUQqHPh",
    "bella": "EXAVITQu4vr4xnSDxMaL",
    "rachel": "21m00Tcm4TlvDq8ikWAM",
    "drew": "29vD33N1CtxCmqQRPOHJ",
    "clyde": "2EiwWnXFnvU5JabPnv8n",
    "domi": "AZnzlk1XvdvUeBnXmlld",
    "dave": "CYw3kZ02Hs0563khs1Fj",
    "fin": "D38z5RcWu1voky8WS1ja",
    "sarah": "EXAVITQu4vr4xnSDxMaL",
    "antoni": "ErXwobaYiN019PkySvjV",
    "thomas": "GBv7mTt0atIp3Br8iCZE",
    "charlie": "IKne3meq5aSn9XLyUdCD",
    "emily": "LcfcDJNUP1GQjkzn1xUU",
    "elli": "MF3mGyEYCl7XYWbV9V6O",
    "callum": "N2lVS1w4EtoT3dr4eOWO",
    "patrick": "ODq5zmih8GrVes37Dizd",
    "harry": "SOYHLrjzK2X1ezoPC6cr",
    "liam": "TX3LPaxmHKxFdv7VOQHJ",
}

DEFAULT_VOICE = "jessa"

_VOICE_ID_RE = re.compile(r"^[A-Za-z0-9]{20}$")


def resolve_voice_id(voice: Optional[str], default: str = DEFAULT_VOICE) -> str:
    """Literal 20-char ids pass through; names are case-insensitive; unknown → default."""
    fallback = VOICES.get(default.lower(), VOICES[DEFAULT_VOICE])
    if not voice:
        return fallback
    if _VOICE_ID_RE.match(voice):
        return voice
    return VOICES.get(voice.lower(), fallback)
