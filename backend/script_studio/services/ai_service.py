import json
import logging
from typing import Any, Callable, Dict, List, Optional, Protocol

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from ..config import Settings, settings
from ..errors import (
    AuthenticationFailure,
    GenerationError,
    QuotaExceeded,
    RateLimited,
    SchemaValidationError,
    UpstreamEmptyResponse,
    UpstreamMalformedResponse,
    UpstreamUnknownFailure,
)
from ..models import GenerateScriptRequest, VideoScriptContent, validate_artifact
from .prompts import RESPONSE_SCHEMA, SYSTEM_INSTRUCTION, build_script_prompt

logger = logging.getLogger(__name__)

AUTH_REASONS = {
    "API_KEY_INVALID",
    "API_KEY_EXPIRED",
    "API_KEY_SERVICE_BLOCKED",
    "ACCESS_TOKEN_EXPIRED",
}
BILLING_REASONS = {"BILLING_DISABLED", "BILLING_NOT_ACTIVE"}


class ScriptBackend(Protocol):
    """Anything that turns a prompt plus response schema into JSON text."""

    async def generate(
        self, prompt: str, system_instruction: str, response_schema: Dict[str, Any]
    ) -> Optional[str]:
        ...


def _detail_entries(error: genai_errors.APIError) -> List[Dict[str, Any]]:
    payload = error.details if isinstance(error.details, dict) else {}
    payload = payload.get("error", payload)
    if not isinstance(payload, dict):
        return []
    return [d for d in payload.get("details") or [] if isinstance(d, dict)]


def _entries_of(entries: List[Dict[str, Any]], type_name: str) -> List[Dict[str, Any]]:
    return [d for d in entries if str(d.get("@type", "")).endswith(type_name)]


def _retry_delay(entries: List[Dict[str, Any]]) -> Optional[float]:
    for entry in _entries_of(entries, "google.rpc.RetryInfo"):
        delay = str(entry.get("retryDelay", ""))
        try:
            return float(delay.rstrip("s"))
        except ValueError:
            return None
    return None


def classify_api_error(error: genai_errors.APIError) -> GenerationError:
    """Map a Gemini error response onto the generation failure kinds.

    Uses the HTTP code, the RPC status and the structured ``details`` entries
    of the error body (ErrorInfo reasons, QuotaFailure violations, RetryInfo).
    """
    entries = _detail_entries(error)
    reasons = {d.get("reason") for d in _entries_of(entries, "google.rpc.ErrorInfo")}
    detail = f"Gemini API error {error.code} {error.status}: {error.message}"

    if reasons & BILLING_REASONS:
        return QuotaExceeded(detail)
    if (
        error.code in (401, 403)
        or error.status in ("UNAUTHENTICATED", "PERMISSION_DENIED")
        or reasons & AUTH_REASONS
    ):
        return AuthenticationFailure(detail)
    if error.code == 429 or error.status == "RESOURCE_EXHAUSTED":
        violations = [
            violation
            for entry in _entries_of(entries, "google.rpc.QuotaFailure")
            for violation in entry.get("violations") or []
        ]
        # Daily quotas do not recover within a retry window
        if any("PerDay" in str(v.get("quotaId", "")) for v in violations):
            return QuotaExceeded(detail)
        return RateLimited(detail, retry_after=_retry_delay(entries))
    return UpstreamUnknownFailure(detail)


class GeminiBackend:
    def __init__(self, api_key: str, model: str, base_url: Optional[str] = None):
        self.model = model
        http_options = types.HttpOptions(base_url=base_url) if base_url else None
        self.geminiClient = genai.Client(api_key=api_key, http_options=http_options)

    async def generate(
        self, prompt: str, system_instruction: str, response_schema: Dict[str, Any]
    ) -> Optional[str]:
        generate_content_config = types.GenerateContentConfig(
            system_instruction=system_instruction,
            response_mime_type="application/json",
            response_schema=response_schema,
        )
        logger.debug("Calling Gemini model %s (%d prompt chars)", self.model, len(prompt))
        try:
            response = await self.geminiClient.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=generate_content_config,
            )
        except genai_errors.APIError as e:
            raise classify_api_error(e) from e
        except httpx.TimeoutException as e:
            raise UpstreamUnknownFailure(f"Gemini request timed out: {e}") from e
        return response.text


class ScriptGenerator:
    """One blocking generation call per request: prompt, call, validate.

    Nothing is retried or cached here; identical requests call the backend
    again and may get a different package back.
    """

    def __init__(
        self,
        config: Settings = settings,
        backend_factory: Callable[[str, str], ScriptBackend] = GeminiBackend,
    ):
        self.settings = config
        self.backend_factory = backend_factory
        self._backend: Optional[ScriptBackend] = None
        self._backend_key: Optional[str] = None

    def _resolve_backend(self) -> ScriptBackend:
        api_key = self.settings.GEMINI_API_KEY
        if not api_key:
            raise AuthenticationFailure("GEMINI_API_KEY environment variable is not set")
        if self._backend is None or self._backend_key != api_key:
            self._backend = self.backend_factory(api_key, self.settings.GEMINI_MODEL)
            self._backend_key = api_key
        return self._backend

    async def generate_script(self, request: GenerateScriptRequest) -> VideoScriptContent:
        backend = self._resolve_backend()
        prompt = build_script_prompt(request)
        try:
            text = await backend.generate(prompt, SYSTEM_INSTRUCTION, RESPONSE_SCHEMA)
        except GenerationError:
            raise
        except Exception as e:
            raise UpstreamUnknownFailure(f"Gemini call failed: {e}") from e
        return self.parse_response(text)

    @staticmethod
    def parse_response(text: Optional[str]) -> VideoScriptContent:
        if not text or not text.strip():
            raise UpstreamEmptyResponse("No content generated from Gemini")
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            raise UpstreamMalformedResponse(
                f"Gemini response is not valid JSON: {e}", raw_response=text
            ) from e
        try:
            return validate_artifact(raw)
        except SchemaValidationError as e:
            raise UpstreamMalformedResponse(
                f"Invalid content structure from Gemini: {e.detail}", raw_response=text
            ) from e
