import logging

from fastapi import Request
from fastapi.responses import JSONResponse, Response

from tmtickets.errors import NotFoundError, SequenceContentionError, StorageError, ValidationError

logger = logging.getLogger(__name__)


def create_json_error_response(status_code: int, message: str, error_type: str | None = None) -> JSONResponse:
    """Create JSON error response with optional type for machine parsing."""
    content = {"message": message}
    if error_type:
        content["type"] = error_type
    return JSONResponse(status_code=status_code, content=content)


async def user_error_handler(_: Request, exc: Exception) -> Response:
    """Handle all UserError subclasses with appropriate status codes."""
    if isinstance(exc, NotFoundError):
        status_code = 404
        error_type = "not_found"
    elif isinstance(exc, ValidationError):
        status_code = 400
        error_type = "validation_error"
    else:
        # Default for any other UserError subclass
        status_code = 400
        error_type = "bad_request"

    return create_json_error_response(status_code=status_code, message=str(exc), error_type=error_type)


async def contention_error_handler(_: Request, exc: Exception) -> Response:
    """Counter stayed contended for the whole retry budget; the caller may retry."""
    logger.warning("Sequence contention: %s", exc)
    response = create_json_error_response(status_code=503, message=str(exc), error_type="sequence_contention")
    response.headers["Retry-After"] = "1"
    return response


async def storage_error_handler(request: Request, exc: Exception) -> Response:
    """Handle store failures (500)."""
    logger.error("Storage error on %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
    return create_json_error_response(status_code=500, message="Storage unavailable.", error_type="storage_error")


async def general_exception_handler(_: Request, exc: Exception) -> Response:
    """Handle unexpected errors (500)."""
    logger.exception("Unexpected error: %s", exc)
    return create_json_error_response(
        status_code=500, message="An unexpected error occurred.", error_type="internal_server_error"
    )
