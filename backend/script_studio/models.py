# backend/script_studio/models.py
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    ValidationError,
    ValidationInfo,
    field_validator,
)
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from .errors import SchemaValidationError

DEFAULT_VIDEO_LENGTH = "1-2 minutes"
DEFAULT_CONTENT_STYLE = "Educational"
DEFAULT_AUDIENCE = "General audience"


class CamelModel(BaseModel):
    """snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GenerateScriptRequest(CamelModel):
    topic: StrictStr
    video_length: StrictStr = DEFAULT_VIDEO_LENGTH
    content_style: StrictStr = DEFAULT_CONTENT_STYLE
    target_audience: Optional[StrictStr] = None

    @field_validator("topic")
    @classmethod
    def topic_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise PydanticCustomError("topic_required", "Topic is required")
        return value

    @field_validator("video_length", "content_style", mode="before")
    @classmethod
    def default_when_blank(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return cls.model_fields[info.field_name].default
        return value


# Generated artifact

class ScriptSections(CamelModel):
    hook: StrictStr
    introduction: StrictStr
    main_content: StrictStr
    call_to_action: StrictStr


class Scene(CamelModel):
    id: StrictInt = Field(gt=0)
    title: StrictStr
    timing: StrictStr
    description: StrictStr
    tags: List[StrictStr]


class VoiceCharacteristics(CamelModel):
    tone: StrictStr
    pace: StrictStr
    style: StrictStr
    enunciation: StrictStr


class VoiceTechnical(CamelModel):
    audio_format: StrictStr
    noise_reduction: StrictBool
    normalization: StrictStr
    pauses: StrictStr


class ElevenLabsSettings(CamelModel):
    # Expected within [0, 1] but not enforced
    voice_style: StrictStr
    stability: StrictFloat
    clarity: StrictFloat
    exaggeration: StrictFloat


class Voiceover(CamelModel):
    characteristics: VoiceCharacteristics
    technical: VoiceTechnical
    eleven_labs_settings: ElevenLabsSettings


class AudioLevels(CamelModel):
    background_music: StrictStr
    voiceover: StrictStr
    sound_effects: StrictStr
    ducking: StrictBool


class MusicDirectives(CamelModel):
    mood: StrictStr
    description: StrictStr
    bpm: StrictStr
    genre: StrictStr
    audio_levels: AudioLevels
    suggested_tracks: List[StrictStr]


class VideoScriptContent(CamelModel):
    title: StrictStr
    script: ScriptSections
    scenes: List[Scene]
    voiceover: Voiceover
    music: MusicDirectives


# Persistence and responses

class StoredScript(CamelModel):
    id: str
    topic: str
    video_length: str
    content_style: str
    target_audience: Optional[str] = None
    generated_content: Optional[VideoScriptContent] = None
    created_at: datetime


class GenerateScriptResponse(CamelModel):
    id: str
    content: VideoScriptContent


def field_errors(exc: ValidationError) -> List[Dict[str, str]]:
    """Flatten a pydantic error into ``[{field, message}]`` entries."""
    errors = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"]) or "body"
        errors.append({"field": field, "message": error["msg"]})
    return errors


def validate_request(raw: Any) -> GenerateScriptRequest:
    try:
        return GenerateScriptRequest.model_validate(raw)
    except ValidationError as e:
        raise SchemaValidationError(field_errors(e)) from e


def validate_artifact(raw: Any) -> VideoScriptContent:
    """Check the shape of a generated package. Content quality is not judged."""
    try:
        return VideoScriptContent.model_validate(raw)
    except ValidationError as e:
        raise SchemaValidationError(field_errors(e)) from e
