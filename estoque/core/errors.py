from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("estoque.errors")

VALIDATION_MESSAGE = "Erro de validação"
INTERNAL_MESSAGE = "Erro interno do servidor"


class ErrorKind(str, Enum):
    """Closed set of failures a client can branch on.

    The value is the stable ``code`` sent to clients; ``status_code`` is the
    HTTP status the API answers with.
    """

    VALIDATION = "validation_error"
    MISSING_CREDENTIALS = "missing_credentials"
    DUPLICATE_SERIAL = "duplicate_serial"
    DUPLICATE_LOGIN = "duplicate_login"
    INVALID_TRANSITION = "invalid_transition"
    DISCARDED_EQUIPMENT = "discarded_equipment"
    INVALID_PERIOD = "invalid_period"
    NOT_FOUND = "not_found"
    MISSING_TOKEN = "missing_token"
    MALFORMED_TOKEN = "malformed_token"
    INVALID_TOKEN = "invalid_token"
    EXPIRED_TOKEN = "expired_token"
    INVALID_CREDENTIALS = "invalid_credentials"
    USER_DEACTIVATED = "user_deactivated"
    FORBIDDEN = "forbidden"
    INTERNAL = "internal_error"

    @property
    def status_code(self) -> int:
        return _STATUS_BY_KIND.get(self, status.HTTP_400_BAD_REQUEST)


_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.MISSING_TOKEN: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.MALFORMED_TOKEN: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.INVALID_TOKEN: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.EXPIRED_TOKEN: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.USER_DEACTIVATED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class AppError(Exception):
    """A domain failure with a user-facing message and a stable kind."""

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message

    @property
    def code(self) -> str:
        return self.kind.value

    @property
    def status_code(self) -> int:
        return self.kind.status_code

    def __repr__(self) -> str:
        return f"AppError({self.kind.value!r}, {self.message!r})"


class ErrorEnvelope(JSONResponse):
    def __init__(
        self,
        *,
        status_code: int,
        code: str,
        message: str,
        details: Any | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        payload: dict[str, Any] = {"error": message, "code": code}
        if details is not None:
            payload["details"] = details
        super().__init__(payload, status_code=status_code, headers=headers)


def _field_name(loc: tuple[Any, ...] | list[Any]) -> str:
    parts = [str(part) for part in loc if part not in ("body", "query", "path", "header", "cookie")]
    return ".".join(parts)


def format_validation_errors(errors: list[dict[str, Any]]) -> list[dict[str, str]]:
    details = []
    for err in errors:
        message = str(err.get("msg", ""))
        # pydantic prefixes messages raised from our own validators
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        details.append({"field": _field_name(err.get("loc", ())), "message": message})
    return details


async def app_error_handler(request: Request, exc: AppError):
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == status.HTTP_401_UNAUTHORIZED else None
    return ErrorEnvelope(status_code=exc.status_code, code=exc.code, message=exc.message, headers=headers)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return ErrorEnvelope(
        status_code=status.HTTP_400_BAD_REQUEST,
        code=ErrorKind.VALIDATION.value,
        message=VALIDATION_MESSAGE,
        details=format_validation_errors(list(exc.errors())),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail
    message = detail if isinstance(detail, str) else "Erro"
    code = ErrorKind.NOT_FOUND.value if exc.status_code == status.HTTP_404_NOT_FOUND else "http_error"
    return ErrorEnvelope(status_code=exc.status_code, code=code, message=message, headers=getattr(exc, "headers", None))


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(
        "request.failed",
        extra={"extra_data": {"method": request.method, "path": request.url.path}},
    )
    return ErrorEnvelope(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        code=ErrorKind.INTERNAL.value,
        message=INTERNAL_MESSAGE,
    )
