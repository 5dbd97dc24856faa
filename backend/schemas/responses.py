"""Structured response schemas — the contract the language model must satisfy.

Two tagged variants, one per conversation mode:
  - DiscoveryResponse: gathers requirements until the user confirms a build
  - EditingResponse:   turns a spoken request into a concrete change instruction

Validation is strict: unknown fields, missing fields, wrong types and
length/size violations are all rejected at this boundary. The JSON schemas
below are what the model is asked to generate against; the pydantic models
are what we actually accept.
"""
import logging
from enum import Enum
from typing import Annotated, Any, ClassVar, Dict, List, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictStr,
    StringConstraints,
    model_validator,
)

logger = logging.getLogger(__name__)

PREVIEW_MIN_ITEMS = 3
PREVIEW_MAX_ITEMS = 12
PREVIEW_ITEM_MAX_CHARS = 150
SPEECH_MAX_CHARS = 300


class Mode(str, Enum):
    DISCOVERY = "discovery"
    EDITING = "editing"


PreviewInstruction = Annotated[StrictStr, StringConstraints(max_length=PREVIEW_ITEM_MAX_CHARS)]


class DiscoveryResponse(BaseModel):
    """Discovery turn. readyToBuild=true implies nextQuestion == ""."""
    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)
    mode: ClassVar[Mode] = Mode.DISCOVERY

    prompt: StrictStr = Field(max_length=800)
    preview_instructions: List[PreviewInstruction] = Field(
        alias="previewInstructions",
        min_length=PREVIEW_MIN_ITEMS,
        max_length=PREVIEW_MAX_ITEMS,
    )
    next_question: StrictStr = Field(alias="nextQuestion", max_length=300)
    speech: StrictStr = Field(max_length=SPEECH_MAX_CHARS)
    ready_to_build: StrictBool = Field(alias="readyToBuild")

    @model_validator(mode="before")
    @classmethod
    def _ready_clears_question(cls, data: Any) -> Any:
        if isinstance(data, dict):
            ready = data.get("readyToBuild", data.get("ready_to_build"))
            question_key = "nextQuestion" if "nextQuestion" in data else "next_question"
            if ready is True and data.get(question_key):
                logger.warning("[Schema] readyToBuild=true with a nextQuestion; clearing it")
                data = {**data, question_key: ""}
        return data

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class EditingResponse(BaseModel):
    """Editing turn. websiteChange is None exactly when nothing should change."""
    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)
    mode: ClassVar[Mode] = Mode.EDITING

    website_change: Optional[StrictStr] = Field(alias="websiteChange", max_length=500)
    speech: StrictStr = Field(max_length=SPEECH_MAX_CHARS)
    next_question: StrictStr = Field(alias="nextQuestion", max_length=200)

    @model_validator(mode="before")
    @classmethod
    def _blank_change_is_none(cls, data: Any) -> Any:
        if isinstance(data, dict):
            key = "websiteChange" if "websiteChange" in data else "website_change"
            value = data.get(key)
            if isinstance(value, str) and not value.strip():
                data = {**data, key: None}
        return data

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


StructuredResponse = Union[DiscoveryResponse, EditingResponse]

_MODELS = {
    Mode.DISCOVERY: DiscoveryResponse,
    Mode.EDITING: EditingResponse,
}


def validate_response(data: Any, mode: Mode) -> StructuredResponse:
    """Validate decoded model output for ``mode``. Raises pydantic.ValidationError."""
    return _MODELS[mode].model_validate(data)


# =====================================================
#  JSON schemas sent with the generation request
# =====================================================

DISCOVERY_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "additionalProperties": False,
    "required": ["prompt", "previewInstructions", "nextQuestion", "speech", "readyToBuild"],
    "properties": {
        "prompt": {"type": "string", "maxLength": 800},
        "previewInstructions": {
            "type": "array",
            "minItems": PREVIEW_MIN_ITEMS,
            "maxItems": PREVIEW_MAX_ITEMS,
            "items": {"type": "string", "maxLength": PREVIEW_ITEM_MAX_CHARS},
        },
        "nextQuestion": {"type": "string", "maxLength": 300},
        "speech": {"type": "string", "maxLength": SPEECH_MAX_CHARS},
        "readyToBuild": {
            "type": "boolean",
            "description": "True only once the user has approved building the site",
        },
    },
}

EDITING_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "additionalProperties": False,
    "required": ["speech", "websiteChange", "nextQuestion"],
    "properties": {
        "websiteChange": {
            "type": ["string", "null"],
            "maxLength": 500,
            "description": "Specific change to make to the website, or null if just chatting",
        },
        "speech": {
            "type": "string",
            "maxLength": SPEECH_MAX_CHARS,
            "description": "Voice response for TTS",
        },
        "nextQuestion": {
            "type": "string",
            "maxLength": 200,
            "description": "Follow-up question if needed",
        },
    },
}

_SCHEMA_NAMES = {
    Mode.DISCOVERY: ("TalResponse", DISCOVERY_SCHEMA),
    Mode.EDITING: ("TalEditorResponse", EDITING_SCHEMA),
}


def response_format(mode: Mode) -> Dict[str, Any]:
    """``text.format`` block for a schema-constrained Responses API call."""
    name, schema = _SCHEMA_NAMES[mode]
    return {
        "type": "json_schema",
        "name": name,
        "schema": schema,
        "strict": True,
    }
