"""Custom exception hierarchy for the voice build backend.

Every error carries a machine ``code``, an HTTP-style ``status_code`` and a
short ``user_message`` that the user-facing layer can show or speak as-is.
"""


class VoiceBuildError(Exception):
    """Base error."""
    status_code = 500
    user_message = "Something went wrong. Please try again."

    def __init__(self, message: str, code: str = "VOICE_BUILD_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)

    def to_payload(self) -> dict:
        return {"code": self.code, "message": self.user_message, "detail": self.message}


class ContentFormatError(VoiceBuildError):
    """Malformed or truncated model output. Recovered inside the LLM gateway."""
    def __init__(self, message: str = "Model output is not valid for the schema"):
        super().__init__(message, code="CONTENT_FORMAT")


# ---- Upstream (model / speech provider) failures ----

class UpstreamError(VoiceBuildError):
    """Upstream service rejected the request for an unclassified reason."""
    user_message = "The assistant service had a problem. Please try again."

    def __init__(self, message: str = "Upstream service error", code: str = "UPSTREAM_ERROR"):
        super().__init__(message, code=code)


class UpstreamAuthError(UpstreamError):
    """Credentials rejected by the model or speech API."""
    status_code = 401
    user_message = "The assistant service rejected our credentials."

    def __init__(self, message: str = "Upstream authentication failed"):
        super().__init__(message, code="UPSTREAM_AUTH")


class QuotaError(UpstreamError):
    """Rate limit or quota exhausted."""
    status_code = 429
    user_message = "The assistant is over its usage limit. Please try again later."

    def __init__(self, message: str = "Upstream quota exceeded"):
        super().__init__(message, code="QUOTA_EXCEEDED")


class TransportError(UpstreamError):
    """Network failure or transport timeout reaching the upstream service."""
    status_code = 503
    user_message = "Network error. Please check your connection and try again."

    def __init__(self, message: str = "Upstream unreachable"):
        super().__init__(message, code="TRANSPORT_ERROR")


class SpeechRequestError(VoiceBuildError):
    """Speech synthesis request is invalid (missing text, unknown voice)."""
    status_code = 400
    user_message = "That speech request was invalid."

    def __init__(self, message: str = "Invalid speech request"):
        super().__init__(message, code="SPEECH_REQUEST_INVALID")


# ---- Session-level failures ----

class CaptureError(VoiceBuildError):
    """Speech capture failed. ``kind`` is one of stt.provider.interface.CaptureErrorKind."""
    status_code = 400

    def __init__(self, kind: str, message: str):
        self.kind = kind
        self.user_message = message
        super().__init__(message, code="CAPTURE_ERROR")


class DispatchError(VoiceBuildError):
    """Command could not be delivered to the artifact builder."""
    status_code = 502
    user_message = "Your request was understood, but the builder could not be reached."

    def __init__(self, message: str = "Dispatch failed", delivered: int = 0):
        super().__init__(message, code="DISPATCH_FAILED")
        self.delivered = delivered


class SessionBusyError(VoiceBuildError):
    """A new turn was requested while another one is still in flight."""
    status_code = 409
    user_message = "Hang on, I'm still working on your last message."

    def __init__(self, message: str = "Session is busy"):
        super().__init__(message, code="SESSION_BUSY")
