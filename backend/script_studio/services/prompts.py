"""Prompt text and response schema sent to Gemini for script generation."""

import json
from typing import Any, Dict

from ..models import DEFAULT_AUDIENCE, GenerateScriptRequest

SYSTEM_INSTRUCTION = (
    "You are an expert YouTube content creator and script writer. You specialize in "
    "creating engaging, high-converting video scripts with detailed production guidance."
)

RESPONSE_SKELETON: Dict[str, Any] = {
    "title": "string",
    "script": {
        "hook": "string",
        "introduction": "string",
        "mainContent": "string",
        "callToAction": "string",
    },
    "scenes": [
        {
            "id": 1,
            "title": "string",
            "timing": "string",
            "description": "string",
            "tags": ["string"],
        }
    ],
    "voiceover": {
        "characteristics": {
            "tone": "string",
            "pace": "string",
            "style": "string",
            "enunciation": "string",
        },
        "technical": {
            "audioFormat": "string",
            "noiseReduction": True,
            "normalization": "string",
            "pauses": "string",
        },
        "elevenLabsSettings": {
            "voiceStyle": "string",
            "stability": 0.75,
            "clarity": 0.85,
            "exaggeration": 0.6,
        },
    },
    "music": {
        "mood": "string",
        "description": "string",
        "bpm": "string",
        "genre": "string",
        "audioLevels": {
            "backgroundMusic": "string",
            "voiceover": "string",
            "soundEffects": "string",
            "ducking": True,
        },
        "suggestedTracks": ["string"],
    },
}

PROMPT_TEMPLATE = """You are an expert YouTube video script writer and content strategist. Generate a complete video script package for the following topic: "{topic}"

Requirements:
- Video Length: {video_length}
- Content Style: {content_style}
- Target Audience: {audience}

Create a comprehensive video script package that includes:

1. **Title**: An engaging, click-worthy YouTube title (50-60 characters)

2. **Script Structure** (timing based on {video_length}):
   - Hook (0-10 seconds): Attention-grabbing opening
   - Introduction (10-20 seconds): Personal connection and context
   - Main Content (20-90% of video): Core information broken into digestible segments
   - Call to Action (final 10-20 seconds): Engagement and subscription request

3. **Scene-by-Scene Visuals**: For each script section, provide:
   - Scene number and timing
   - Detailed visual description
   - Shot types and camera angles
   - Visual elements (graphics, text overlays, etc.)
   - Relevant tags for video production

4. **Voiceover Instructions**:
   - Voice characteristics (tone, pace, style)
   - Technical audio settings
   - ElevenLabs specific settings

5. **Background Music & Audio**:
   - Music mood and style
   - BPM and genre recommendations
   - Audio level specifications
   - Suggested track names

Respond ONLY with valid JSON in this exact structure, with no text before or after it:
{skeleton}

Make the content engaging, professional, and optimized for YouTube success. Ensure all timings add up to the requested video length."""


def build_script_prompt(request: GenerateScriptRequest) -> str:
    return PROMPT_TEMPLATE.format(
        topic=request.topic,
        video_length=request.video_length,
        content_style=request.content_style,
        audience=request.target_audience or DEFAULT_AUDIENCE,
        skeleton=json.dumps(RESPONSE_SKELETON, indent=2),
    )


def _string() -> Dict[str, Any]:
    return {"type": "STRING"}


def _object(properties: Dict[str, Any], ordered: bool = False) -> Dict[str, Any]:
    schema = {"type": "OBJECT", "properties": properties, "required": list(properties)}
    if ordered:
        schema["property_ordering"] = list(properties)
    return schema


def _array(items: Dict[str, Any]) -> Dict[str, Any]:
    return {"type": "ARRAY", "items": items}


# Mirrors models.VideoScriptContent; field names are the wire (camelCase) names.
RESPONSE_SCHEMA: Dict[str, Any] = _object(
    {
        "title": _string(),
        "script": _object(
            {
                "hook": _string(),
                "introduction": _string(),
                "mainContent": _string(),
                "callToAction": _string(),
            },
            ordered=True,
        ),
        "scenes": _array(
            _object(
                {
                    "id": {"type": "INTEGER"},
                    "title": _string(),
                    "timing": _string(),
                    "description": _string(),
                    "tags": _array(_string()),
                }
            )
        ),
        "voiceover": _object(
            {
                "characteristics": _object(
                    {
                        "tone": _string(),
                        "pace": _string(),
                        "style": _string(),
                        "enunciation": _string(),
                    }
                ),
                "technical": _object(
                    {
                        "audioFormat": _string(),
                        "noiseReduction": {"type": "BOOLEAN"},
                        "normalization": _string(),
                        "pauses": _string(),
                    }
                ),
                "elevenLabsSettings": _object(
                    {
                        "voiceStyle": _string(),
                        "stability": {"type": "NUMBER"},
                        "clarity": {"type": "NUMBER"},
                        "exaggeration": {"type": "NUMBER"},
                    }
                ),
            }
        ),
        "music": _object(
            {
                "mood": _string(),
                "description": _string(),
                "bpm": _string(),
                "genre": _string(),
                "audioLevels": _object(
                    {
                        "backgroundMusic": _string(),
                        "voiceover": _string(),
                        "soundEffects": _string(),
                        "ducking": {"type": "BOOLEAN"},
                    }
                ),
                "suggestedTracks": _array(_string()),
            }
        ),
    },
    ordered=True,
)
