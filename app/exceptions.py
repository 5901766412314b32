"""
Error taxonomy and the FastAPI handlers that render it.

Every failure leaves the API as ``{"error": message}``.  Service code raises
the ``BlogError`` subclasses below; the handlers installed by
``install_exception_handlers`` translate them (and framework / database
errors) into JSON responses without leaking internal detail.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

SERVER_ERROR_MESSAGE = "Server Error"


class BlogError(Exception):
    status_code: int = 500
    message: str = SERVER_ERROR_MESSAGE

    def __init__(self, message: str | None = None, status_code: int | None = None) -> None:
        if message is not None:
            self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(BlogError):
    status_code = 400
    message = "Invalid request"


class ConflictError(BlogError):
    status_code = 400
    message = "Conflict"


class UnauthenticatedError(BlogError):
    status_code = 401
    message = "Unauthorized"


class NotFoundError(BlogError):
    # Some older routes report missing records as 400; callers pass status_code.
    status_code = 404
    message = "Not found"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def blog_error_handler(request: Request, exc: BlogError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return _error(exc.status_code, exc.message)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Report the first validation problem as a 400.

    Field validators in ``app.schemas`` raise ``PydanticCustomError`` with
    ready-to-show messages ("Please provide email", "Invalid post Id"), so
    the rendered ``msg`` is returned as-is.
    """
    errors = exc.errors()
    message = errors[0]["msg"] if errors else ValidationError.message
    return _error(400, message)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error(exc.status_code, str(exc.detail))


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return _error(500, SERVER_ERROR_MESSAGE)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error(500, SERVER_ERROR_MESSAGE)


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BlogError, blog_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
