"""Response envelope and exception handlers.

Every API response has the shape
``{success, data?, error?, message?, pagination?, details?}``.
"""

import logging
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from catalog.documents import serialize
from config.settings import get_settings
from core.exceptions import CatalogServiceError
from core.sentry import capture_exception

logger = logging.getLogger(__name__)

# Location prefixes FastAPI adds to validation errors
_LOCATION_PREFIXES = {"body", "query", "path", "header"}


def envelope(
    data: Any = None,
    message: str | None = None,
    pagination: BaseModel | None = None,
) -> dict[str, Any]:
    """Build a success envelope, serializing stored documents in ``data``."""
    body: dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = serialize(data)
    if message is not None:
        body["message"] = message
    if pagination is not None:
        body["pagination"] = pagination.model_dump(by_alias=True)
    return body


def error_body(error: str, **extra: Any) -> dict[str, Any]:
    body: dict[str, Any] = {"success": False, "error": error}
    body.update({k: v for k, v in extra.items() if v is not None})
    return body


def validation_details(exc: RequestValidationError) -> list[dict[str, str]]:
    """Flatten pydantic errors into ``{field, message}`` pairs with dotted paths."""
    details = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ())]
        if loc and loc[0] in _LOCATION_PREFIXES:
            loc = loc[1:]
        details.append({"field": ".".join(loc), "message": err.get("msg", "Invalid value")})
    return details


async def catalog_error_handler(request: Request, exc: CatalogServiceError) -> JSONResponse:
    details = exc.details or None
    if isinstance(details, dict):
        details = [details]
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.message, details=details),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content=error_body("Validation failed", details=validation_details(exc)),
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail = exc.detail
    if exc.status_code == 404 and detail == "Not Found" and request.url.path.startswith("/api"):
        detail = "API endpoint not found"
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(detail)),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    capture_exception(exc, {"path": request.url.path})
    message = str(exc) if get_settings().is_development else "Something went wrong"
    return JSONResponse(
        status_code=500,
        content=error_body("Internal Server Error", message=message),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CatalogServiceError, catalog_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_error_handler)


def server_error(action: str, error: Exception) -> HTTPException:
    """Log a failed store operation and build the 500 the caller should raise."""
    logger.error(f"{action}: {error}")
    if get_settings().is_development:
        return HTTPException(status_code=500, detail=f"{action}: {error}")
    return HTTPException(status_code=500, detail=action)
