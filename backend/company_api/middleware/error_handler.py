"""
Global error handlers for the company directory API.

Translates exceptions into the failure envelope ``{success: false, message}``.
Never exposes internal details for unexpected errors.
"""
import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from ..errors import DomainError, StoreError

logger = structlog.get_logger("company_api.errors")


def _failure(status_code: int, message: str, code: str, details=None) -> JSONResponse:
    content = {"success": False, "message": message, "code": code}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def _validation_details(errors: list) -> list[dict]:
    return [
        {"field": ".".join(str(p) for p in err.get("loc", ())), "message": err.get("msg")}
        for err in errors
    ]


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
        logger.error(
            "store_error",
            error_code=exc.error_code,
            error=exc.message,
            path=request.url.path,
        )
        return _failure(exc.status_code, exc.message, exc.error_code, exc.details or None)

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
        logger.warning("domain_error", error_code=exc.error_code, path=request.url.path)
        return _failure(exc.status_code, exc.message, exc.error_code)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.warning("validation_error", path=request.url.path)
        return _failure(422, "Invalid request body", "INVALID_INPUT", _validation_details(exc.errors()))

    @app.exception_handler(ValidationError)
    async def model_validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
        logger.warning("validation_error", path=request.url.path)
        return _failure(422, "Invalid company data", "INVALID_INPUT", _validation_details(exc.errors()))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "unhandled_error",
            error_type=type(exc).__name__,
            error=str(exc),
            path=request.url.path,
        )
        return _failure(500, "Internal server error", "INTERNAL_ERROR")
