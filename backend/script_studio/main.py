import logging
import platform
from datetime import datetime, timezone
from typing import List, Optional

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings, settings
from .errors import GENERIC_GENERATION_MESSAGE, MissingRequestBody, ScriptStudioError
from .models import GenerateScriptResponse, StoredScript
from .services.script_service import ScriptRequestHandler, build_script_handler

logger = logging.getLogger(__name__)

router = APIRouter()


def get_script_handler(request: Request) -> ScriptRequestHandler:
    return request.app.state.script_handler


def _parse_limit(limit: Optional[str]) -> Optional[int]:
    """Missing, non-numeric or non-positive limits fall back to the default."""
    try:
        value = int(limit)
    except (TypeError, ValueError):
        return None
    return value if value > 0 else None


@router.post("/api/generate-script", response_model=GenerateScriptResponse)
async def generate_script(
    request: Request,
    script_handler: ScriptRequestHandler = Depends(get_script_handler),
):
    try:
        raw_request = await request.json()
    except ValueError:
        raise MissingRequestBody()
    return await script_handler.handle(raw_request)


@router.get("/api/video-scripts/{script_id}", response_model=StoredScript)
async def get_video_script(
    script_id: str,
    script_handler: ScriptRequestHandler = Depends(get_script_handler),
):
    return await script_handler.fetch_by_id(script_id)


@router.get("/api/video-scripts", response_model=List[StoredScript])
async def list_video_scripts(
    limit: Optional[str] = None,
    script_handler: ScriptRequestHandler = Depends(get_script_handler),
):
    return await script_handler.fetch_recent(_parse_limit(limit))


@router.get("/api/debug")
async def debug_info(request: Request):
    config: Settings = request.app.state.settings
    script_handler: ScriptRequestHandler = request.app.state.script_handler
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "hasGeminiApiKey": bool(config.GEMINI_API_KEY),
        "geminiModel": config.GEMINI_MODEL,
        "storeBackend": type(script_handler.store).__name__,
        "pythonVersion": platform.python_version(),
        "environment": config.ENVIRONMENT,
    }


async def script_studio_error_handler(request: Request, exc: ScriptStudioError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


async def unexpected_error_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s: %r", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"message": GENERIC_GENERATION_MESSAGE})


def create_app(
    script_handler: Optional[ScriptRequestHandler] = None,
    config: Settings = settings,
) -> FastAPI:
    logging.basicConfig(
        level=config.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="Script Studio")
    app.state.settings = config
    app.state.script_handler = script_handler or build_script_handler(config)

    # CORS setup
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    app.add_exception_handler(ScriptStudioError, script_studio_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
    app.include_router(router)
    logger.info("Video scripts kept in %s", type(app.state.script_handler.store).__name__)
    return app


app = create_app()


def run():
    uvicorn.run("script_studio.main:app", host=settings.HOST, port=settings.PORT)
