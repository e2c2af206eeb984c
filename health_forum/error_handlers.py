"""
Global exception handlers for the forum API.

Every ``ForumError`` renders as ``{"detail": ..., "code": ...}`` with the
status carried by the exception class.  Server-side failures are logged
with their traceback; caller errors are logged at WARNING.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from health_forum.errors import ForumError, NotAuthenticatedError

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register the forum error handler on *app*."""

    @app.exception_handler(ForumError)
    async def forum_error_handler(request: Request, exc: ForumError):
        if exc.http_status >= 500:
            logger.error(
                "%s on %s: %s", exc.code, request.url.path, exc.message, exc_info=exc
            )
        else:
            logger.warning("%s on %s: %s", exc.code, request.url.path, exc.message)

        headers = None
        if isinstance(exc, NotAuthenticatedError):
            headers = {"WWW-Authenticate": "Bearer"}
        return JSONResponse(
            status_code=exc.http_status, content=exc.to_response(), headers=headers
        )
