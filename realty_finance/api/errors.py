"""Exception handlers for the FastAPI application.

Every error body has the same shape:

    {"error": "<code>", "detail": "<message>", "errors": [{"field": ..., "message": ...}]}

so clients can tell bad loan parameters apart from unavailable services.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from realty_finance.engine.validation import ValidationError

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Application error with a stable machine-readable code."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "bad_request"

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)


class Unauthenticated(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthenticated"


class SimulationNotFound(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "simulation_not_found"


class UsageLimitExceeded(ApiError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    code = "usage_limit_exceeded"


class NarrativeUnavailable(ApiError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "narrative_unavailable"


def error_response(status_code: int, code: str, detail: str, errors: list[dict] | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": code, "detail": detail, "errors": errors or []},
    )


async def loan_validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "invalid_loan_parameters",
        "Loan parameters are invalid",
        [{"field": e.field, "message": e.message} for e in exc.errors],
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = []
    for error in exc.errors():
        # Drop the leading "body"/"header" location segment
        loc = [str(part) for part in error.get("loc", ())[1:]]
        field = ".".join(loc) if loc else "unknown"
        errors.append({"field": field, "message": error.get("msg", "")})
    return error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "invalid_request",
        "Request body is malformed",
        errors,
    )


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return error_response(exc.status_code, exc.code, exc.detail)


async def storage_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
    return error_response(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "storage_unavailable",
        "Simulation storage is temporarily unavailable",
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ValidationError, loan_validation_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(SQLAlchemyError, storage_error_handler)
