"""Turn schema — one role-tagged utterance in a conversation transcript."""
from typing import Literal

from pydantic import BaseModel, ConfigDict

Role = Literal["user", "assistant"]


class Turn(BaseModel):
    """Immutable once created; transcripts only ever append Turns."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    role: Role
    content: str
