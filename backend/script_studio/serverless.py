"""Netlify/Lambda style function wrapping the same script pipeline as the server.

The event carries ``httpMethod`` and a raw JSON ``body``; the return value is a
``{statusCode, headers, body}`` dict.

Not referenced by the package metadata: the hosting platform loads this module
by its function file name and calls the module-level ``handler``.
"""

import asyncio
import json
import logging
from typing import Any, Dict, Optional

from .errors import GENERIC_GENERATION_MESSAGE, MissingRequestBody, ScriptStudioError
from .services.script_service import ScriptRequestHandler, build_script_handler

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}

# Reused across invocations of a warm function instance
_script_handler: Optional[ScriptRequestHandler] = None
# One loop per instance; the Gemini client's connection pool is bound to it
_loop: Optional[asyncio.AbstractEventLoop] = None


def get_script_handler() -> ScriptRequestHandler:
    global _script_handler
    if _script_handler is None:
        _script_handler = build_script_handler()
    return _script_handler


def _run(coro):
    global _loop
    if _loop is None or _loop.is_closed():
        _loop = asyncio.new_event_loop()
    return _loop.run_until_complete(coro)


def _response(status_code: int, body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return {
        "statusCode": status_code,
        "headers": dict(CORS_HEADERS),
        "body": "" if body is None else json.dumps(body),
    }


def handler(
    event: Dict[str, Any],
    context: Any = None,
    script_handler: Optional[ScriptRequestHandler] = None,
) -> Dict[str, Any]:
    method = event.get("httpMethod")
    if method == "OPTIONS":
        return _response(200)
    if method != "POST":
        return _response(405, {"message": "Method not allowed"})
    if not event.get("body"):
        return _response(400, MissingRequestBody().to_body())

    try:
        raw_request = json.loads(event["body"])
    except json.JSONDecodeError:
        return _response(400, MissingRequestBody().to_body())

    script_handler = script_handler or get_script_handler()
    try:
        result = _run(script_handler.handle(raw_request))
    except ScriptStudioError as e:
        return _response(e.status_code, e.to_body())
    except Exception:
        logger.exception("Unexpected error generating script")
        return _response(500, {"message": GENERIC_GENERATION_MESSAGE})

    return _response(200, result.model_dump(mode="json", by_alias=True))
