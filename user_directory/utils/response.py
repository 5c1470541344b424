import logging

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


def create_response(
    message: str,
    data=None,
    status_code: int = status.HTTP_200_OK,
    status_text: str | None = None,
    headers: dict | None = None,
) -> JSONResponse:
    """Return a consistent API response payload and status code."""
    payload_status = status_text or ("success" if status_code < 400 else "error")
    encoded_data = jsonable_encoder(data)
    return JSONResponse(
        status_code=status_code,
        content={
            "message": message,
            "data": encoded_data,
            "status": payload_status,
            "status_code": status_code,
        },
        headers=headers,
    )


def handle_exception(error: Exception, fallback_message: str = "Internal server error") -> JSONResponse:
    """Coerce raised errors into the shared response structure."""
    if isinstance(error, HTTPException):
        detail = error.detail if isinstance(error.detail, str) else str(error.detail)
        return create_response(detail, None, error.status_code, status_text="error", headers=error.headers)

    if isinstance(error, ValidationError):
        first = error.errors()[0] if error.errors() else {}
        return create_response(
            first.get("msg", "Invalid request"),
            None,
            422,
            status_text="error",
        )

    logger.exception("Unhandled error: %s", fallback_message, exc_info=error)
    return create_response(fallback_message, None, status.HTTP_500_INTERNAL_SERVER_ERROR, status_text="error")


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    # Errors raised from dependencies never reach the route's try block
    return handle_exception(exc)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return create_response(
        message,
        {"errors": errors},
        422,
        status_text="error",
    )
