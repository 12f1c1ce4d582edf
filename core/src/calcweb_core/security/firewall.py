from __future__ import annotations

import logging
from typing import Final

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.applications import Starlette
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.routing import NoMatchFound
from starlette.types import ASGIApp

from calcweb_core.api_errors import fail, wants_json
from calcweb_core.config import CoreConfig, SecurityConfig
from calcweb_core.flash import FlashQueue
from calcweb_core.responses import CookieMutation, RedirectDescription, to_redirect_response
from calcweb_core.security.errors import AuthenticationError, ConfigurationError
from calcweb_core.security.remember_me import (
    REMEMBER_ME_COOKIE,
    clear_remember_me_cookie,
    decode_remember_me,
    encode_remember_me,
    remember_me_cookie,
)
from calcweb_core.security.users import AuthenticatedUser, UserProvider
from calcweb_core.security.utils import (
    LAST_USERNAME_KEY,
    get_session_user,
    record_failed_attempt,
    set_session_user,
)

logger = logging.getLogger(__name__)

LOGIN_ROUTE_NAME: Final[str] = "security_login"
LOGOUT_ROUTE_NAME: Final[str] = "security_logout"
TARGET_PATH_KEY: Final[str] = "_security.target_path"

_FORM_CONTENT_TYPES: Final[tuple[str, ...]] = (
    "application/x-www-form-urlencoded",
    "multipart/form-data",
)
_ALWAYS_PUBLIC: Final[tuple[str, ...]] = ("/healthz", "/openapi.json", "/docs", "/redoc")


def _is_form_submission(request: Request) -> bool:
    content_type = (request.headers.get("content-type") or "").lower()
    return content_type.startswith(_FORM_CONTENT_TYPES)


def _is_checked(raw: object) -> bool:
    return str(raw or "").strip().lower() in {"1", "on", "true", "yes"}


class FirewallMiddleware(BaseHTTPMiddleware):
    """Authentication layer in front of the UI routes.

    - POST form on the login path: authenticate and redirect.
    - Any method on the logout path: clear the session and redirect; routes never see it.
    - Anything else outside the public paths requires a user in the session.
    """

    def __init__(
        self, app: ASGIApp, *, config: CoreConfig, users: UserProvider | None = None
    ) -> None:
        super().__init__(app)
        self.config = config
        self.users = users or UserProvider.from_config(config.security)

    @property
    def login_path(self) -> str:
        return self.config.security.login_path

    @property
    def logout_path(self) -> str:
        return self.config.security.logout_path

    def is_public_path(self, path: str) -> bool:
        if path == self.login_path:
            return True
        for prefix in (*_ALWAYS_PUBLIC, *self.config.security.public_paths):
            if path == prefix or path.startswith(prefix.rstrip("/") + "/"):
                return True
        return False

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path

        if path == self.logout_path:
            return self._logout(request)

        if path == self.login_path and request.method == "POST" and _is_form_submission(request):
            return await self._login(request)

        user = get_session_user(request.session)
        if user is None:
            user = self._restore_remembered_user(request)

        if user is None and not self.is_public_path(path):
            return self._start_authentication(request)

        return await call_next(request)

    async def _login(self, request: Request) -> Response:
        form = await request.form()
        username = str(form.get("username") or "").strip()
        password = str(form.get("password") or "")
        remember = _is_checked(form.get("remember_me"))

        request.session[LAST_USERNAME_KEY] = username
        try:
            user = self.users.authenticate(username, password)
        except AuthenticationError as exc:
            logger.warning("Failed login for %r: %s", username, exc)
            record_failed_attempt(request.session, username, exc)
            description = RedirectDescription(
                target=self.login_path,
                cookies=(clear_remember_me_cookie(self.config),),
            )
            return to_redirect_response(description)

        target = request.session.pop(TARGET_PATH_KEY, None) or self.config.web.home_path
        request.session.clear()
        request.session[LAST_USERNAME_KEY] = user.username
        set_session_user(request.session, user)
        logger.info("User %r logged in", user.username)

        cookies: tuple[CookieMutation, ...] = ()
        if remember:
            value = encode_remember_me(self.config, user.username)
            if value:
                cookies = (remember_me_cookie(self.config, value),)

        flash = FlashQueue(request.session)
        flash.push_success(
            "security.login.success",
            username=user.username,
            appname=self.config.web.app_name,
        )
        return to_redirect_response(RedirectDescription(target=target, cookies=cookies))

    def _logout(self, request: Request) -> Response:
        user = get_session_user(request.session)
        request.session.clear()
        if user is not None:
            logger.info("User %r logged out", user.username)

        FlashQueue(request.session).push_success(
            "security.logout.success", appname=self.config.web.app_name
        )
        description = RedirectDescription(
            target=self.login_path,
            cookies=(clear_remember_me_cookie(self.config),),
        )
        return to_redirect_response(description)

    def _restore_remembered_user(self, request: Request) -> AuthenticatedUser | None:
        username = decode_remember_me(self.config, request.cookies.get(REMEMBER_ME_COOKIE))
        if username is None:
            return None
        user = self.users.load_user(username)
        if user is None:
            return None
        set_session_user(request.session, user)
        logger.info("User %r restored from remember-me cookie", user.username)
        return user

    def _start_authentication(self, request: Request) -> Response:
        if wants_json(request):
            return JSONResponse(
                status_code=401,
                content=fail(code="unauthorized", message="Authentication required").model_dump(
                    mode="json"
                ),
            )

        if request.method == "GET":
            request.session[TARGET_PATH_KEY] = request.url.path
        FlashQueue(request.session).push("info", "security.login.required")
        return to_redirect_response(RedirectDescription(target=self.login_path))


def current_user(request: Request) -> AuthenticatedUser:
    """Dependency returning the session user; the firewall guarantees one on protected paths."""

    user = get_session_user(request.session)
    if user is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return user


def require_role(request: Request, role: str) -> AuthenticatedUser:
    user = current_user(request)
    if not user.has_role(role):
        raise HTTPException(status_code=403, detail="Access denied")
    return user


def _route_path(app: Starlette, name: str) -> str | None:
    # Resolved through the router tree: included routers do not expose their routes on app.routes.
    try:
        return str(app.url_path_for(name))
    except NoMatchFound:
        return None


def assert_logout_intercepted(app: Starlette, security: SecurityConfig) -> None:
    """Check that the logout stub is shadowed by the firewall and the login page is routed."""

    firewalls = [m for m in app.user_middleware if m.cls is FirewallMiddleware]
    if not firewalls:
        raise ConfigurationError("The security firewall middleware is not installed.")

    firewall_config = firewalls[0].kwargs.get("config")
    firewall_security = getattr(firewall_config, "security", None)
    firewall_logout = getattr(firewall_security, "logout_path", None)
    firewall_login = getattr(firewall_security, "login_path", None)
    if firewall_logout != security.logout_path or firewall_login != security.login_path:
        raise ConfigurationError(
            f"Firewall paths ({firewall_login!r}, {firewall_logout!r}) differ from the configured "
            f"login/logout paths ({security.login_path!r}, {security.logout_path!r})."
        )

    logout_route = _route_path(app, LOGOUT_ROUTE_NAME)
    if logout_route != firewall_logout:
        raise ConfigurationError(
            f"Logout route {logout_route!r} is not intercepted by the firewall "
            f"(which handles {firewall_logout!r})."
        )

    login_route = _route_path(app, LOGIN_ROUTE_NAME)
    if login_route != firewall_login:
        raise ConfigurationError(
            f"Login route {login_route!r} does not match the firewall login path "
            f"{firewall_login!r}; anonymous users would be sent to a missing page."
        )
