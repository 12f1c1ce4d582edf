"""Policy acceptance cookie.

Accepting the policy is a redirect to the home page carrying a ``POLICY_ACCEPTED=1``
cookie. The home page hides the banner when that cookie is present.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Final

from starlette.requests import Request

from calcweb_core.config import CoreConfig
from calcweb_core.responses import CookieMutation, RedirectDescription, redirect_to_home

POLICY_COOKIE: Final[str] = "POLICY_ACCEPTED"
POLICY_ACCEPTED_VALUE: Final[str] = "1"
ACCEPTED_MESSAGE_KEY: Final[str] = "cookie_banner.accepted"


@dataclass(frozen=True)
class RequestContext:
    host: str
    base_path: str = ""
    path: str = "/"

    @classmethod
    def from_request(cls, request: Request) -> RequestContext:
        return cls(
            host=request.url.hostname or "",
            base_path=str(request.scope.get("root_path") or ""),
            path=request.url.path,
        )


@dataclass(frozen=True)
class ConsentRecord:
    path: str
    domain: str = ""
    accepted: bool = True

    @property
    def name(self) -> str:
        return POLICY_COOKIE

    @property
    def value(self) -> int:
        return 1 if self.accepted else 0

    def to_cookie(self) -> CookieMutation:
        return CookieMutation(
            name=self.name,
            value=str(self.value),
            path=self.path,
            domain=self.domain,
        )


CookiePathResolver = Callable[[RequestContext], str]


def configured_cookie_path(config: CoreConfig) -> CookiePathResolver:
    """Cookie scope taken from deployment configuration only."""

    path = config.web.cookie_path

    def _resolve(context: RequestContext) -> str:
        return path

    return _resolve


def accept_policy(
    context: RequestContext, *, cookie_path: CookiePathResolver, home_url: str
) -> RedirectDescription:
    record = ConsentRecord(path=cookie_path(context))
    return redirect_to_home(
        home_url,
        message_key=ACCEPTED_MESSAGE_KEY,
        cookies=(record.to_cookie(),),
    )


def is_policy_accepted(cookies: Mapping[str, str]) -> bool:
    return cookies.get(POLICY_COOKIE) == POLICY_ACCEPTED_VALUE
