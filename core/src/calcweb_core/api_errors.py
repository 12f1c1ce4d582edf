from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel
from starlette.requests import Request


class ApiError(BaseModel):
    code: str
    message: str
    details: Any | None = None


class ApiErrorResponse(BaseModel):
    ok: Literal[False] = False
    error: ApiError


def fail(*, code: str, message: str, details: Any | None = None) -> ApiErrorResponse:
    return ApiErrorResponse(error=ApiError(code=code, message=message, details=details))


def status_to_code(status_code: int) -> str:
    if status_code == 401:
        return "unauthorized"
    if status_code == 403:
        return "forbidden"
    if status_code == 404:
        return "not_found"
    if status_code == 405:
        return "method_not_allowed"
    if status_code == 422:
        return "validation_error"
    if 400 <= status_code < 500:
        return "client_error"
    return "server_error"


def wants_json(request: Request) -> bool:
    accept = (request.headers.get("accept") or "").lower()
    return "application/json" in accept and "text/html" not in accept
