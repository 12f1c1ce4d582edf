"""Inspectable response descriptions.

Controllers that only redirect return a ``RedirectDescription`` instead of mutating a
response in place. ``to_redirect_response`` applies it to a real Starlette response at the
edge of the request.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from fastapi.responses import RedirectResponse

from calcweb_core.flash import FlashKind, FlashQueue


@dataclass(frozen=True)
class CookieMutation:
    name: str
    value: str
    path: str = "/"
    domain: str = ""
    max_age: int | None = None
    secure: bool = False
    httponly: bool = False
    samesite: Literal["lax", "strict", "none"] = "lax"


@dataclass(frozen=True)
class FlashMessage:
    kind: FlashKind
    key: str
    params: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RedirectDescription:
    target: str
    status_code: int = 302
    cookies: tuple[CookieMutation, ...] = ()
    messages: tuple[FlashMessage, ...] = ()


def redirect_to_home(
    home_url: str,
    *,
    message_key: str | None = None,
    cookies: tuple[CookieMutation, ...] = (),
    **params: Any,
) -> RedirectDescription:
    messages: tuple[FlashMessage, ...] = ()
    if message_key:
        messages = (FlashMessage(kind="success", key=message_key, params=params),)
    return RedirectDescription(target=home_url, cookies=cookies, messages=messages)


def to_redirect_response(
    description: RedirectDescription, flash: FlashQueue | None = None
) -> RedirectResponse:
    resp = RedirectResponse(url=description.target, status_code=description.status_code)
    for cookie in description.cookies:
        resp.set_cookie(
            cookie.name,
            cookie.value,
            max_age=cookie.max_age,
            path=cookie.path,
            # Empty domain means host-only; Starlette omits the attribute for None.
            domain=cookie.domain or None,
            secure=cookie.secure,
            httponly=cookie.httponly,
            samesite=cookie.samesite,
        )
    if flash is not None:
        for message in description.messages:
            flash.push(message.kind, message.key, **message.params)
    return resp
