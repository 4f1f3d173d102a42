"""
Uniform JSON envelope and the exception handlers that produce it.

Success: {"success": true, "message": "...", "data": {...}}
Failure: {"success": false, "message": "...", "error": ...}
"""
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from pharmatrust.core.config import settings
from pharmatrust.core.exceptions import PharmacyError

logger = logging.getLogger(__name__)


def ok(message: str, data: Any = None, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    payload: Dict[str, Any] = {"success": True, "message": message}
    if data is not None:
        payload["data"] = data
    return JSONResponse(status_code=status_code, content=jsonable_encoder(payload))


def err(
    message: str,
    *,
    status_code: int = status.HTTP_400_BAD_REQUEST,
    error: Any = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    payload: Dict[str, Any] = {"success": False, "message": message}
    if error is not None:
        payload["error"] = error
    return JSONResponse(status_code=status_code, content=jsonable_encoder(payload), headers=headers)


def describe_validation_errors(errors) -> list:
    """Flatten pydantic error dicts into "field: reason" strings."""
    described = []
    for e in errors:
        loc = [str(part) for part in e.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc)
        msg = e.get("msg", "Invalid value")
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        described.append(f"{field}: {msg}" if field else msg)
    return described


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(PharmacyError)
    async def pharmacy_error_handler(request: Request, exc: PharmacyError) -> JSONResponse:
        return err(
            exc.message,
            status_code=exc.status_code,
            error=exc.errors or None,
            headers=exc.headers,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
            msg = "Route not found! Please check the API documentation."
        else:
            msg = exc.detail if isinstance(exc.detail, str) else "Request failed"
        return err(msg, status_code=exc.status_code, headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = describe_validation_errors(exc.errors())
        return err("Validation error: " + "; ".join(errors), error=errors)

    @app.exception_handler(ValidationError)
    async def model_validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
        errors = describe_validation_errors(exc.errors())
        return err("Validation error: " + "; ".join(errors), error=errors)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            f"Unhandled error on {request.method} {request.url.path}: {type(exc).__name__}: {exc}",
            exc_info=True,
        )
        return err(
            "Something went wrong!",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error=str(exc) if settings.DEBUG else "Internal Server Error",
        )
