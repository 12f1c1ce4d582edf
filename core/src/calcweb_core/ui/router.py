from __future__ import annotations

from pathlib import Path
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from calcweb_core.config import CoreConfig, SecurityConfig
from calcweb_core.consent import (
    RequestContext,
    accept_policy,
    configured_cookie_path,
    is_policy_accepted,
)
from calcweb_core.flash import FlashQueue
from calcweb_core.messages import trans
from calcweb_core.responses import to_redirect_response
from calcweb_core.security.controller import logout, prepare_login_view
from calcweb_core.security.firewall import (
    LOGIN_ROUTE_NAME,
    LOGOUT_ROUTE_NAME,
    current_user,
    require_role,
)
from calcweb_core.security.utils import AuthenticationUtils, get_session_user

BASE_DIR = Path(__file__).resolve().parent
TEMPLATES_DIR = BASE_DIR / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.globals["trans"] = trans

# Role a user needs to see and accept the cookie policy banner.
POLICY_ROLE = "ROLE_USER"

router = APIRouter(tags=["ui"])


def _get_config(request: Request) -> CoreConfig:
    config = getattr(request.app.state, "calcweb_config", None)
    if config is None:
        raise HTTPException(status_code=500, detail="Configuration not loaded")
    return config


def _flashes(request: Request) -> list[dict[str, str]]:
    return [
        {"kind": f["kind"], "message": trans(f["key"], **(f.get("params") or {}))}
        for f in FlashQueue(request.session).pop_all()
    ]


def render_page(
    request: Request, name: str, ctx: dict[str, Any], *, status_code: int = 200
) -> HTMLResponse:
    config = _get_config(request)
    user = get_session_user(request.session)
    base: dict[str, Any] = {
        "app_name": config.web.app_name,
        "user": user,
        "flashes": _flashes(request),
        "show_policy_banner": (
            user is not None
            and user.has_role(POLICY_ROLE)
            and not is_policy_accepted(request.cookies)
        ),
        "logout_path": config.security.logout_path,
    }
    base.update(ctx)
    return templates.TemplateResponse(request, name, base, status_code=status_code)


@router.get("/", response_class=HTMLResponse)
async def ui_home(request: Request) -> HTMLResponse:
    user = current_user(request)
    return render_page(
        request,
        "index.html",
        {"title": _get_config(request).web.app_name, "username": user.username},
    )


async def ui_login(request: Request) -> HTMLResponse:
    config = _get_config(request)
    view = prepare_login_view(AuthenticationUtils(request.session), config.web.debug)

    error_message = None
    if view.error is not None:
        error_message = trans(view.error.message_key, **view.error.message_data)

    return render_page(
        request,
        "login.html",
        {
            "title": trans("security.login.title"),
            "form": view.form,
            "error": error_message,
            "login_path": config.security.login_path,
        },
    )


async def ui_logout(request: Request) -> None:
    logout(_get_config(request).security.logout_path)


def security_router(security: SecurityConfig) -> APIRouter:
    """Login page and logout stub, mounted where the firewall expects them."""

    security_routes = APIRouter(tags=["security"])
    security_routes.add_api_route(
        security.login_path,
        ui_login,
        methods=["GET", "POST"],
        name=LOGIN_ROUTE_NAME,
        response_class=HTMLResponse,
    )
    security_routes.add_api_route(
        security.logout_path,
        ui_logout,
        methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        name=LOGOUT_ROUTE_NAME,
        response_model=None,
    )
    return security_routes


@router.api_route("/policy/accept", methods=["GET", "POST"], response_model=None)
async def ui_policy_accept(request: Request) -> RedirectResponse:
    require_role(request, POLICY_ROLE)
    config = _get_config(request)
    description = accept_policy(
        RequestContext.from_request(request),
        cookie_path=configured_cookie_path(config),
        home_url=config.web.home_path,
    )
    return to_redirect_response(description, FlashQueue(request.session))
