from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware
from starlette.responses import Response

from calcweb_core import __version__
from calcweb_core.api_errors import fail, status_to_code, wants_json
from calcweb_core.config import (
    CoreConfig,
    apply_env_overrides,
    ensure_session_secret,
    load_core_config,
)
from calcweb_core.home import CalcWebPaths, ensure_calcweb_layout, resolve_calcweb_home
from calcweb_core.messages import trans
from calcweb_core.security.errors import ConfigurationError
from calcweb_core.security.firewall import FirewallMiddleware, assert_logout_intercepted
from calcweb_core.ui.router import router as ui_router
from calcweb_core.ui.router import security_router, templates

logger = logging.getLogger(__name__)

SESSION_COOKIE = "calcweb_session"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

SECURITY_HEADERS: dict[str, str] = {
    "Content-Security-Policy": (
        "default-src 'self'; object-src 'none'; base-uri 'none'; frame-ancestors 'self'; "
        "form-action 'self'"
    ),
    "X-Frame-Options": "SAMEORIGIN",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "same-origin",
    "X-Permitted-Cross-Domain-Policies": "none",
}


def build_file_handler(paths: CalcWebPaths, config: CoreConfig) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        paths.log_file_path,
        maxBytes=config.logging.max_size_mb * 1024 * 1024,
        backupCount=config.logging.backup_count,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def configure_logging(paths: CalcWebPaths, config: CoreConfig) -> None:
    root = logging.getLogger()
    root.setLevel(config.logging.level.upper())
    # Avoid adding duplicate handlers if reloaded
    if not any(isinstance(h, RotatingFileHandler) for h in root.handlers):
        root.addHandler(build_file_handler(paths, config))


def _error_response(request: Request, status_code: int, message: str) -> Response:
    if wants_json(request):
        return JSONResponse(
            status_code=status_code,
            content=fail(code=status_to_code(status_code), message=message).model_dump(
                mode="json"
            ),
        )

    config = getattr(request.app.state, "calcweb_config", None)
    app_name = config.web.app_name if config is not None else "CalcWeb"
    # Rendered without touching the session: the 500 handler runs outside its middleware.
    return templates.TemplateResponse(
        request,
        "error.html",
        {
            "title": trans("error.title"),
            "app_name": app_name,
            "user": None,
            "flashes": [],
            "show_policy_banner": False,
            "status_code": status_code,
            "message": message,
        },
        status_code=status_code,
    )


def create_app(config: CoreConfig | None = None) -> FastAPI:
    home = resolve_calcweb_home()
    paths = ensure_calcweb_layout(home)
    if config is None:
        config = load_core_config(paths)
    config = ensure_session_secret(paths, config)
    config = apply_env_overrides(config)

    @asynccontextmanager
    async def _lifespan(app: FastAPI):
        configure_logging(paths, config)

        logger.info("%s starting up", config.web.app_name)
        logger.info(f"Logs directory: {paths.logs_dir}")
        if config.web.debug:
            logger.warning("Debug mode is enabled")
        if not config.security.users:
            logger.warning("No users configured; nobody can sign in")

        yield

        logger.info("%s shutting down", config.web.app_name)

    app = FastAPI(title="CalcWeb Core", version=__version__, lifespan=_lifespan)

    app.state.calcweb_home = home
    app.state.calcweb_paths = paths
    app.state.calcweb_config = config

    # Order matters: the last middleware added runs first. The session must be available
    # before the firewall runs.
    app.add_middleware(FirewallMiddleware, config=config)
    app.add_middleware(
        SessionMiddleware,
        secret_key=config.security.session_secret,
        session_cookie=SESSION_COOKIE,
        max_age=config.security.session_max_age_seconds,
        path=config.web.cookie_path,
        same_site="lax",
        https_only=config.web.cookie_secure,
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        response = await call_next(request)
        logger.info(f"{request.method} {request.url.path} - {response.status_code}")
        return response

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response

    @app.exception_handler(ConfigurationError)
    async def _configuration_error_handler(request: Request, exc: ConfigurationError) -> Response:
        logger.error(
            "Configuration error on %s %s: %s",
            request.method,
            request.url.path,
            exc,
            exc_info=exc,
        )
        return _error_response(request, 500, trans("error.configuration"))

    @app.exception_handler(RequestValidationError)
    async def _validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content=fail(
                code="validation_error",
                message="Request validation failed",
                details=exc.errors(),
            ).model_dump(mode="json"),
        )

    @app.exception_handler(HTTPException)
    async def _http_exception_handler(request: Request, exc: HTTPException) -> Response:
        return _error_response(request, exc.status_code, str(exc.detail))

    @app.exception_handler(StarletteHTTPException)
    async def _starlette_http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> Response:
        message = exc.detail if isinstance(exc.detail, str) else "HTTP error"
        return _error_response(request, exc.status_code, message)

    @app.exception_handler(Exception)
    async def _unhandled_error_handler(request: Request, exc: Exception) -> Response:
        logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        # Avoid leaking internals.
        return _error_response(request, 500, trans("error.generic"))

    app.include_router(security_router(config.security))
    app.include_router(ui_router)

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    assert_logout_intercepted(app, config.security)

    return app
