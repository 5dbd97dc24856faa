"""Voice Build Backend — entry point.

REST: stateless voice-chat inference + speech synthesis.
WS:   stateful voice sessions (capture → inference → commands → speech).
"""
from contextlib import asynccontextmanager
from pathlib import Path
import logging

from dotenv import load_dotenv
from fastapi import FastAPI, APIRouter, WebSocket, HTTPException, Request
from fastapi.responses import JSONResponse, Response
from starlette.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

# Load env before anything else
ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / ".env")

from config.settings import get_settings
from config.validators import validate_startup_config
from core.logging_config import setup_logging
from core.exceptions import VoiceBuildError
from gateway.ws_server import handle_ws_connection
from prompting.llm_gateway import InferenceResult, get_response_client
from schemas.responses import Mode
from schemas.turns import Turn
from tts.orchestrator import get_tts_provider

# ---- Setup logging ----
setup_logging()
logger = logging.getLogger(__name__)


# ---- Lifespan ----
@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logger.info("Voice Build BE starting — env=%s", settings.ENV)
    validate_startup_config(settings)
    logger.info("Voice Build BE ready — mock_llm=%s mock_tts=%s", settings.MOCK_LLM, settings.MOCK_TTS)
    yield
    logger.info("Voice Build BE shutdown complete")


# ---- App ----
app = FastAPI(
    title="Voice Build Backend",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_credentials=True,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

api_router = APIRouter(prefix="/api")


@app.exception_handler(VoiceBuildError)
async def voice_build_error_handler(request: Request, exc: VoiceBuildError):
    logger.warning("Request failed: path=%s code=%s detail=%s", request.url.path, exc.code, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.user_message, "code": exc.code},
    )


# =====================================================
#  REST Endpoints
# =====================================================

# ---- Health ----
@api_router.get("/health")
async def health():
    settings = get_settings()
    tts = get_tts_provider()
    tts_healthy = await tts.is_healthy()
    return {
        "status": "ok",
        "env": settings.ENV,
        "version": "0.1.0",
        "llm_model": settings.LLM_MODEL,
        "mock_llm": settings.MOCK_LLM,
        "tts_provider": type(tts).__name__,
        "tts_healthy": tts_healthy,
        "mock_tts": settings.MOCK_TTS,
    }


# ---- Voice chat (stateless; the client keeps the history) ----
class VoiceChatRequest(BaseModel):
    message: str
    history: List[Turn] = Field(default_factory=list)


class EditorChatRequest(VoiceChatRequest):
    app_id: str = Field(alias="appId")
    context: Optional[Any] = None

    model_config = {"populate_by_name": True}


def _chat_envelope(result: InferenceResult) -> Dict[str, Any]:
    return {
        "success": True,
        "data": result.response.to_wire(),
        "usage": result.usage,
        "repaired": result.repaired,
        "fallback": result.fallback,
    }


@api_router.post("/voice-chat")
async def voice_chat(req: VoiceChatRequest):
    if not req.message.strip():
        raise HTTPException(status_code=400, detail="message is required")
    logger.info("Voice chat: history=%d message='%s'", len(req.history), req.message[:60])
    result = await get_response_client().respond(req.history, req.message.strip(), Mode.DISCOVERY)
    return _chat_envelope(result)


@api_router.post("/voice-chat-editor")
async def voice_chat_editor(req: EditorChatRequest):
    if not req.message.strip():
        raise HTTPException(status_code=400, detail="message is required")
    logger.info("Voice chat editor: app=%s history=%d context=%s message='%s'",
                req.app_id, len(req.history), req.context is not None, req.message[:60])
    result = await get_response_client().respond(req.history, req.message.strip(), Mode.EDITING)
    return _chat_envelope(result)


# ---- Speech synthesis ----
class SpeakRequest(BaseModel):
    text: str = ""
    voice: Optional[str] = None
    model: Optional[str] = None
    voice_settings: Optional[Dict[str, Any]] = Field(default=None, alias="voiceSettings")

    model_config = {"populate_by_name": True}


@api_router.post("/speak")
async def speak(req: SpeakRequest):
    result = await get_tts_provider().synthesize(
        req.text, voice=req.voice, model=req.model, voice_settings=req.voice_settings,
    )
    logger.info("Speak: voice=%s bytes=%d mock=%s", result.voice_id, len(result.audio_bytes), result.is_mock)
    return Response(
        content=result.audio_bytes,
        media_type=result.content_type,
        headers={
            "Content-Length": str(len(result.audio_bytes)),
            "Cache-Control": "public, max-age=3600",
            "Accept-Ranges": "bytes",
        },
    )


app.include_router(api_router)


# =====================================================
#  WebSocket Endpoint
# =====================================================

@app.websocket("/api/ws/session")
async def websocket_endpoint(websocket: WebSocket, mode: str = "discovery", app_id: Optional[str] = None):
    """Voice session endpoint for the browser client."""
    await handle_ws_connection(websocket, mode=mode, app_id=app_id)
