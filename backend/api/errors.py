# api/errors.py
# ============================================================================
# DJTUNEZ BACKEND: HTTP ERROR MAPPING
# ============================================================================
# Every error leaves the API as {error, message?}; no stack traces
# ============================================================================

from contextlib import contextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from errors import DJTunezError, UpstreamError

logger = structlog.get_logger(component="api_errors")


@contextmanager
def upstream_boundary(message: str):
    """Convert anything that is not already a domain error into UpstreamError."""
    try:
        yield
    except DJTunezError:
        raise
    except Exception as e:
        logger.error("handler_failed", error=str(e), error_type=type(e).__name__, exc_info=True)
        raise UpstreamError(message) from e


def _format_validation(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return "; ".join(parts)


def register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(DJTunezError)
    async def domain_error_handler(request: Request, exc: DJTunezError):
        if exc.status_code >= 500:
            logger.error("request_failed", path=request.url.path, code=exc.code.value)
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"error": "Validation failed", "message": _format_validation(exc)},
        )

    @app.exception_handler(HTTPException)
    async def http_error_handler(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error("unhandled_exception", path=request.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})
