"""Failure taxonomy shared by the generation pipeline and its HTTP adapters.

Every error carries the HTTP status and the message a caller is allowed to
see. Upstream failures keep their original detail for operator logs only.
"""

from typing import Any, Dict, List, Optional

GENERIC_GENERATION_MESSAGE = "Failed to generate video script. Please try again."


class ScriptStudioError(Exception):
    status_code: int = 500
    public_message: str = GENERIC_GENERATION_MESSAGE

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.public_message
        super().__init__(self.detail)

    def to_body(self) -> Dict[str, Any]:
        """JSON body returned to the caller."""
        return {"message": self.public_message}


class SchemaValidationError(ScriptStudioError):
    """Payload does not match the expected shape."""

    status_code = 400
    public_message = "Invalid request data"

    def __init__(self, errors: List[Dict[str, str]], detail: Optional[str] = None):
        self.errors = errors
        super().__init__(detail or "; ".join(f"{e['field']}: {e['message']}" for e in errors))

    def to_body(self) -> Dict[str, Any]:
        return {"message": self.public_message, "errors": self.errors}


class MissingRequestBody(SchemaValidationError):
    """Body absent or not parseable as JSON."""

    public_message = "Request body is required"

    def __init__(self):
        super().__init__([{"field": "body", "message": self.public_message}])


class StorageFailure(ScriptStudioError):
    pass


class ScriptNotFound(ScriptStudioError):
    status_code = 404
    public_message = "Video script not found"

    def __init__(self, script_id: str):
        self.script_id = script_id
        super().__init__(f"No video script with id {script_id!r}")


class GenerationError(ScriptStudioError):
    """Base class for every failure raised while calling the backend."""


class AuthenticationFailure(GenerationError):
    status_code = 401
    public_message = "Gemini API key not configured or invalid. Please check your environment variables."


class QuotaExceeded(GenerationError):
    pass


class RateLimited(GenerationError):
    def __init__(self, detail: Optional[str] = None, retry_after: Optional[float] = None):
        self.retry_after = retry_after
        super().__init__(detail)


class UpstreamEmptyResponse(GenerationError):
    pass


class UpstreamMalformedResponse(GenerationError):
    def __init__(self, detail: Optional[str] = None, raw_response: Optional[str] = None):
        self.raw_response = raw_response
        super().__init__(detail)


class UpstreamUnknownFailure(GenerationError):
    pass
