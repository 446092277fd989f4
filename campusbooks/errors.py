# campusbooks/errors.py
"""Error taxonomy and the FastAPI handlers that render it as JSON.

Every error reaches the client as ``{"message": "..."}`` with the status
code carried by the exception class.
"""
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .utils import logger


class CampusBooksError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(CampusBooksError):
    status_code = 400
    default_message = "Invalid input"


class NotFoundError(CampusBooksError):
    status_code = 404
    default_message = "Book not found"


class StorageError(CampusBooksError):
    status_code = 500
    default_message = "Storage failure"


class UploadError(CampusBooksError):
    status_code = 400
    default_message = "Invalid upload"


class AuthError(CampusBooksError):
    status_code = 401
    default_message = "Not authenticated"


def _first_error_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    err = errors[0]
    loc = ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path"))
    msg = err.get("msg", "Invalid value")
    return f"{loc}: {msg}" if loc else msg


def register_error_handlers(app: FastAPI):
    @app.exception_handler(CampusBooksError)
    async def handle_app_error(request: Request, exc: CampusBooksError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        message = _first_error_message(exc)
        logger.warning("Rejected %s %s: %s", request.method, request.url.path, message)
        return JSONResponse(status_code=400, content={"message": message})

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"message": str(exc.detail)})
