"""
API Exception Handlers

Map catalog errors onto the uniform ``{success: false, message}`` body.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import structlog

from storefront.errors import CatalogError
from storefront.serving.api.schemas import status_payload

logger = structlog.get_logger(__name__)


def error_body(message: str, **extra) -> dict:
    return {"success": False, "message": message, **extra}


async def catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
    details = dict(exc.details)
    extra = {}
    if "deletionStatus" in details:
        extra["deletionStatus"] = status_payload(details.pop("deletionStatus"))
    if details.get("warnings"):
        extra["warnings"] = details.pop("warnings")
    if details:
        extra["details"] = details

    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        "Request failed",
        path=request.url.path,
        error_type=type(exc).__name__,
        status_code=exc.status_code,
        error=exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, **extra))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": ".".join(str(part) for part in error["loc"][1:]), "message": error["msg"]}
        for error in exc.errors()
    ]
    logger.info("Invalid request", path=request.url.path, errors=errors)
    return JSONResponse(status_code=400, content=error_body("Invalid request", details={"errors": errors}))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=500, content=error_body("Internal server error"))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CatalogError, catalog_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
