"""Shared fixtures: a conforming Gemini payload and a fake backend."""

from __future__ import annotations

import copy
import json
from typing import Any, Dict, List, Optional

from script_studio.config import Settings
from script_studio.services.ai_service import ScriptGenerator

SAMPLE_CONTENT: Dict[str, Any] = {
    "title": "Intermittent Fasting Basics: What Really Happens",
    "script": {
        "hook": "What if skipping breakfast was the easiest health upgrade you ever made?",
        "introduction": "I tried intermittent fasting for 90 days. Here is what I learned.",
        "mainContent": "Fasting windows, the 16:8 method, and what the research says.",
        "callToAction": "Subscribe for part two, where we cover fasting and exercise.",
    },
    "scenes": [
        {
            "id": 1,
            "title": "Hook",
            "timing": "0:00-0:10",
            "description": "Close-up of an empty breakfast plate, quick zoom out.",
            "tags": ["close-up", "text overlay"],
        },
        {
            "id": 2,
            "title": "Main content",
            "timing": "0:20-1:30",
            "description": "Animated clock showing a 16 hour fasting window.",
            "tags": ["animation", "infographic"],
        },
    ],
    "voiceover": {
        "characteristics": {
            "tone": "Warm and confident",
            "pace": "Moderate",
            "style": "Conversational",
            "enunciation": "Clear",
        },
        "technical": {
            "audioFormat": "WAV 48kHz",
            "noiseReduction": True,
            "normalization": "-16 LUFS",
            "pauses": "Short pause after the hook",
        },
        "elevenLabsSettings": {
            "voiceStyle": "Narrative",
            "stability": 0.75,
            "clarity": 0.85,
            "exaggeration": 0.6,
        },
    },
    "music": {
        "mood": "Upbeat",
        "description": "Light acoustic background",
        "bpm": "100-110",
        "genre": "Acoustic pop",
        "audioLevels": {
            "backgroundMusic": "-24 dB",
            "voiceover": "-6 dB",
            "soundEffects": "-12 dB",
            "ducking": True,
        },
        "suggestedTracks": ["Morning Light", "Fresh Start"],
    },
}

_UNSET = object()


def sample_content() -> Dict[str, Any]:
    return copy.deepcopy(SAMPLE_CONTENT)


class FakeBackend:
    """Stands in for Gemini; records every prompt it receives."""

    def __init__(self, response: Any = _UNSET, error: Optional[Exception] = None):
        self.response = json.dumps(SAMPLE_CONTENT) if response is _UNSET else response
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    async def generate(self, prompt, system_instruction, response_schema):
        self.calls.append(
            {
                "prompt": prompt,
                "system_instruction": system_instruction,
                "response_schema": response_schema,
            }
        )
        if self.error is not None:
            raise self.error
        return self.response


def make_settings(**overrides: Any) -> Settings:
    values: Dict[str, Any] = {
        "GEMINI_API_KEY": "test-key",
        "SCRIPT_DB_PATH": None,
        "_env_file": None,
    }
    values.update(overrides)
    return Settings(**values)


def make_generator(backend: FakeBackend, **overrides: Any) -> ScriptGenerator:
    return ScriptGenerator(
        make_settings(**overrides), backend_factory=lambda api_key, model: backend
    )
