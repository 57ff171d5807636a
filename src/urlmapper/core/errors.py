from __future__ import annotations
from dataclasses import dataclass

from starlette.exceptions import HTTPException


class StoreError(Exception):
    """Raised when the mapping store cannot complete an operation."""


class ShortCodeConflict(StoreError):
    """A record already exists under the requested short code."""

    def __init__(self, short_url: str):
        super().__init__(f"short code {short_url!r} already exists")
        self.short_url = short_url


class RecordNotFoundError(StoreError):
    """The record targeted by an in-place update does not exist."""

    def __init__(self, short_url: str):
        super().__init__(f"no record for short code {short_url!r}")
        self.short_url = short_url


class ShortCodeExhausted(StoreError):
    """Every generated short code collided with an existing record."""


@dataclass(frozen=True)
class ApiError:
    code: str
    message: str


STATUS_TO_ERROR_CODE: dict[int, str] = {
    400: "BAD_REQUEST",
    404: "NOT_FOUND",
    500: "INTERNAL_SERVER_ERROR",
}


def normalize_http_exception(exc: HTTPException) -> ApiError:
    """Maps an HTTPException with a string detail to (code, message)."""
    code = STATUS_TO_ERROR_CODE.get(exc.status_code, "ERROR")
    message = exc.detail if isinstance(exc.detail, str) and exc.detail else "Request failed"
    return ApiError(code=code, message=message)


def error_body(error: ApiError) -> dict[str, dict[str, str]]:
    return {"error": {"code": error.code, "message": error.message}}
