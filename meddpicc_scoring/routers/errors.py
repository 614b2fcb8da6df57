"""
Error Handlers - MEDDPICC Scoring Engine
meddpicc_scoring/routers/errors.py

Maps request validation failures and the engine's typed errors onto the
standard ErrorResponse body.
"""

from datetime import datetime, timezone

import structlog
from fastapi import Request, status
from fastapi.exceptions import HTTPException, RequestValidationError
from fastapi.responses import JSONResponse

from meddpicc_scoring.core.exceptions import (
    ConfigurationConflictError,
    ConfigurationNotFoundError,
    ConfigurationValidationError,
    InfrastructureError,
    QualificationError,
)
from meddpicc_scoring.models.assessment import ErrorResponse

logger = structlog.get_logger(__name__)


#  Custom Exception Handlers

FIELD_MESSAGES = {
    "entity_id": {
        "missing": "Entity ID is required",
        "string_too_short": "Entity ID must not be empty",
    },
    "thresholds": {
        "missing": "Thresholds are required",
    },
    "pillars": {
        "missing": "At least one pillar is required",
    },
    "version": {
        "int_parsing": "Version must be a valid integer",
    },
}

DEFAULT_MESSAGES = {
    "missing": "Field '{field}' is required",
    "string_too_short": "Field '{field}' is too short",
    "string_too_long": "Field '{field}' is too long",
    "less_than_equal": "Field '{field}' exceeds maximum allowed value",
    "greater_than_equal": "Field '{field}' is below minimum allowed value",
    "uuid_parsing": "Field '{field}' must be a valid UUID",
    "string_type": "Field '{field}' must be a string",
    "int_parsing": "Field '{field}' must be a valid integer",
    "float_parsing": "Field '{field}' must be a number",
    "enum": "Field '{field}' has an invalid value",
    "value_error": "Field '{field}' is invalid",
}

ERROR_STATUS = [
    (ConfigurationValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (ConfigurationConflictError, status.HTTP_409_CONFLICT),
    (ConfigurationNotFoundError, status.HTTP_404_NOT_FOUND),
    (InfrastructureError, status.HTTP_503_SERVICE_UNAVAILABLE),
]


def get_validation_message(field: str, error_type: str) -> str:
    if field in FIELD_MESSAGES:
        field_msgs = FIELD_MESSAGES[field]
        for key in field_msgs:
            if key in error_type:
                return field_msgs[key]

    for key, template in DEFAULT_MESSAGES.items():
        if key in error_type:
            return template.format(field=field)

    return f"Invalid value for field '{field}'"


def error_body(error_code: str, message: str, details: dict = None) -> dict:
    return ErrorResponse(
        error_code=error_code,
        message=message,
        details=details,
        timestamp=datetime.now(timezone.utc),
    ).model_dump(mode="json")


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()

    if not errors:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=error_body("VALIDATION_ERROR", "Request validation failed"),
        )

    err = errors[0]
    error_type = err.get("type", "")
    loc = err.get("loc", [])

    if "json_invalid" in error_type:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_body("INVALID_REQUEST", "Malformed JSON request body"),
        )

    field = ".".join(str(l) for l in loc if l not in ("body", "query", "path", "header"))
    message = get_validation_message(field, error_type)

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_body(
            "VALIDATION_ERROR",
            message,
            {"field": field, "type": error_type} if field else None,
        ),
    )


async def qualification_exception_handler(request: Request, exc: QualificationError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for error_class, code in ERROR_STATUS:
        if isinstance(exc, error_class):
            status_code = code
            break

    details = {"retryable": exc.retryable}
    if isinstance(exc, ConfigurationValidationError):
        details.update(errors=exc.errors, warnings=exc.warnings)

    log = logger.error if status_code >= 500 else logger.info
    log("request_failed", path=request.url.path, error_code=exc.error_code, status_code=status_code)

    return JSONResponse(
        status_code=status_code,
        content=error_body(exc.error_code, exc.message, details),
    )


#  Exception Helpers

def raise_error(status_code: int, error_code: str, message: str):
    raise HTTPException(
        status_code=status_code,
        detail=error_body(error_code, message),
    )
