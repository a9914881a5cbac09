# ticketing_auth/core/responses.py
import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ticketing_auth.core.errors import IdentityError
from ticketing_auth.schemas.response import ApiResponse

logger = logging.getLogger(__name__)


def success(message: str, data: Any = None, code: int = status.HTTP_200_OK) -> ApiResponse:
    return ApiResponse(status=True, code=code, message=message, data=data)


def failure_response(
    code: int,
    message: str,
    errors: dict[str, list[str]] | list[Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = ApiResponse(
        status=False,
        code=code,
        message=message,
        errors=errors if errors is not None else [],
    )
    return JSONResponse(
        status_code=code,
        content=body.model_dump(mode="json"),
        headers=headers,
    )


def validation_errors(exc: RequestValidationError) -> dict[str, list[str]]:
    """
    Flatten pydantic errors into {field: [messages]}.

    ("body", "email") -> "email"; nested fields are dotted.
    """
    errors: dict[str, list[str]] = {}
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ())]
        field = ".".join(loc[1:]) if len(loc) > 1 else (loc[0] if loc else "body")
        message = str(err.get("msg", "Invalid value"))
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.setdefault(field, []).append(message)
    return errors


async def identity_error_handler(request: Request, exc: IdentityError) -> JSONResponse:
    return failure_response(exc.status_code, exc.message, exc.errors)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return failure_response(
        422,
        "validation failed",
        validation_errors(exc),
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    if isinstance(exc.detail, str):
        message, errors = exc.detail, []
    else:
        message = "Request failed"
        errors = exc.detail if isinstance(exc.detail, list) else [exc.detail]
    return failure_response(exc.status_code, message, errors, getattr(exc, "headers", None))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return failure_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Server error")


def register_exception_handlers(app: FastAPI) -> None:
    """Route every failure through the response envelope."""
    app.add_exception_handler(IdentityError, identity_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
