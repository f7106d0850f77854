"""
Domain errors and the handlers that turn them into ``{"error": ...}`` responses.
"""
import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException


log = structlog.get_logger(__name__)


class ZimmetError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(ZimmetError):
    status_code = 404


class ConstraintViolation(ZimmetError):
    """Uniqueness collision or a reference that blocks the operation."""
    status_code = 409


class InsufficientStock(ConstraintViolation):
    pass


class InvalidTransition(ZimmetError):
    status_code = 409


class TransactionFailure(ZimmetError):
    status_code = 500


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def zimmet_error_handler(request: Request, exc: ZimmetError) -> JSONResponse:
    if exc.status_code >= 500:
        log.error("request_failed", path=request.url.path, error=exc.message)
    return _error(exc.status_code, exc.message)


async def http_error_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return _error(exc.status_code, str(exc.detail))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else err.get("msg", "invalid"))
    return _error(422, "; ".join(parts) or "Invalid request")


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception("unhandled_error", path=request.url.path)
    return _error(500, str(exc) or "Internal server error")


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ZimmetError, zimmet_error_handler)
    app.add_exception_handler(HTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
