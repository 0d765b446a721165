"""
Domain error taxonomy.

Every failure the take feed can report to a client is one of these. The
FastAPI layer maps them to HTTP responses in a single handler (see main.py),
so stores and services raise them without knowing about HTTP.
"""
from typing import Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse


class TakeFeedError(Exception):
    """Base class — carries the HTTP status and a stable error code."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "error"

    def __init__(self, detail: str = "") -> None:
        super().__init__(detail)
        self.detail = detail

    def to_dict(self) -> dict:
        return {"error": self.code, "detail": self.detail}


class Unauthenticated(TakeFeedError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthenticated"


class GateClosed(TakeFeedError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "gate_closed"


class ValidationError(TakeFeedError):
    status_code = 422  # unprocessable
    code = "validation_error"

    def __init__(self, detail: str, field: Optional[str] = None) -> None:
        super().__init__(detail)
        self.field = field

    def to_dict(self) -> dict:
        body = super().to_dict()
        if self.field:
            body["field"] = self.field
        return body


class NotFound(TakeFeedError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class NotOwner(TakeFeedError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "not_owner"


class Conflict(TakeFeedError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"


class StoreFailure(TakeFeedError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "store_failure"


async def take_feed_error_handler(request: Request, exc: TakeFeedError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)
