import logging
from typing import Any, List, Optional

from ..config import Settings, settings
from ..errors import (
    AuthenticationFailure,
    GenerationError,
    SchemaValidationError,
    StorageFailure,
    UpstreamEmptyResponse,
    UpstreamMalformedResponse,
)
from ..models import GenerateScriptResponse, StoredScript, validate_request
from .ai_service import ScriptGenerator
from .db_service import ScriptStore, build_store

logger = logging.getLogger(__name__)

RAW_EXCERPT_CHARS = 500


class ScriptRequestHandler:
    """Validate, generate, store. Shared by the server and the serverless function."""

    def __init__(self, generator: ScriptGenerator, store: ScriptStore, default_limit: int = 10):
        self.generator = generator
        self.store = store
        self.default_limit = default_limit

    async def handle(self, raw_request: Any) -> GenerateScriptResponse:
        try:
            request = validate_request(raw_request)
        except SchemaValidationError as e:
            logger.info("Rejected script request: %s", e.detail)
            raise

        logger.info(
            "Generating script for topic=%r length=%r style=%r",
            request.topic,
            request.video_length,
            request.content_style,
        )
        try:
            content = await self.generator.generate_script(request)
        except AuthenticationFailure as e:
            logger.error("Gemini authentication failed: %s", e.detail)
            raise
        except UpstreamMalformedResponse as e:
            excerpt = (e.raw_response or "")[:RAW_EXCERPT_CHARS]
            logger.error("Malformed Gemini response: %s | raw=%r", e.detail, excerpt)
            raise
        except UpstreamEmptyResponse as e:
            logger.error("Empty Gemini response: %s", e.detail)
            raise
        except GenerationError as e:
            logger.error("Script generation failed (%s): %s", type(e).__name__, e.detail)
            raise

        try:
            video_script = await self.store.create(request, content)
        except Exception as e:
            logger.exception("Failed to store generated script")
            raise StorageFailure(f"Could not store video script: {e}") from e
        logger.info("Stored video script %s", video_script.id)
        return GenerateScriptResponse(id=video_script.id, content=content)

    async def fetch_by_id(self, script_id: str) -> StoredScript:
        return await self.store.get(script_id)

    async def fetch_recent(self, limit: Optional[int] = None) -> List[StoredScript]:
        return await self.store.list_recent(limit or self.default_limit)


def build_script_handler(config: Settings = settings) -> ScriptRequestHandler:
    return ScriptRequestHandler(
        ScriptGenerator(config),
        build_store(config),
        default_limit=config.RECENT_SCRIPTS_LIMIT,
    )
