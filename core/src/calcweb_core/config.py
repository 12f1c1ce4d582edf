from __future__ import annotations

import json
import os
import secrets
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from calcweb_core.home import CalcWebPaths


class NetworkConfig(BaseModel):
    bind_host: str = Field(default="127.0.0.1")
    port: int = Field(default=8790, ge=1, le=65535)


class WebConfig(BaseModel):
    app_name: str = Field(default="Calculation")
    debug: bool = Field(
        default=False,
        description=(
            "Development mode. Pre-checks 'remember me' on the login form; "
            "CALCWEB_DEBUG=1 forces it on."
        ),
    )
    home_path: str = Field(default="/", description="Target of every redirect-to-home.")
    cookie_path: str = Field(
        default="/",
        description="Scope path of application cookies (policy acceptance, remember-me).",
    )
    cookie_secure: bool = Field(default=False)


class UserConfig(BaseModel):
    """A locally configured account.

    The password is stored as a bcrypt hash (see ``calcweb_core.security.passwords``).
    """

    username: str = Field(min_length=1)
    password_hash: str = Field(min_length=1)
    roles: list[str] = Field(default_factory=lambda: ["ROLE_USER"])
    enabled: bool = Field(default=True)


class SecurityConfig(BaseModel):
    login_path: str = Field(default="/login")
    logout_path: str = Field(default="/logout")
    session_secret: str | None = Field(default=None)
    session_max_age_seconds: int = Field(default=14 * 24 * 60 * 60, ge=60)
    remember_me_lifetime_seconds: int = Field(default=30 * 24 * 60 * 60, ge=60)
    public_paths: list[str] = Field(
        default_factory=list,
        description="Extra path prefixes reachable without authentication.",
    )
    users: list[UserConfig] = Field(default_factory=list)


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    max_size_mb: int = Field(
        default=10, ge=1, description="Max size of a log file in MB before rolling."
    )
    backup_count: int = Field(default=5, ge=1, description="Number of log archives to keep.")


class CoreConfig(BaseModel):
    version: str = Field(default="1")
    network: NetworkConfig = Field(default_factory=NetworkConfig)
    web: WebConfig = Field(default_factory=WebConfig)
    security: SecurityConfig = Field(default_factory=SecurityConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def _read_json(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def load_core_config(paths: CalcWebPaths) -> CoreConfig:
    """Load config from ${CALCWEB_HOME}/config/core.json.

    - If missing: returns defaults.
    - Validation is performed by Pydantic.
    """

    config_path = paths.core_config_path
    if not config_path.exists():
        return CoreConfig()

    raw = _read_json(config_path)
    return CoreConfig.model_validate(raw)


def write_core_config(paths: CalcWebPaths, config: CoreConfig) -> None:
    """Persist config to ${CALCWEB_HOME}/config/core.json."""

    payload = config.model_dump(mode="json", exclude_none=True)
    paths.config_dir.mkdir(parents=True, exist_ok=True)
    paths.core_config_path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")


def ensure_session_secret(paths: CalcWebPaths, config: CoreConfig) -> CoreConfig:
    """Ensure a session signing secret exists and is stored in config.

    If missing, generate a new secret and persist it to core.json.
    """

    raw = (config.security.session_secret or "").strip()
    if raw:
        return config

    secret = secrets.token_urlsafe(32)
    updated_security = config.security.model_copy(update={"session_secret": secret})
    updated = config.model_copy(update={"security": updated_security})
    write_core_config(paths, updated)
    return updated


def apply_env_overrides(
    config: CoreConfig, environ: dict[str, str] | None = None
) -> CoreConfig:
    env = os.environ if environ is None else environ

    raw = (env.get("CALCWEB_DEBUG") or "").strip().lower()
    if raw in {"1", "true", "yes", "on"}:
        updated_web = config.web.model_copy(update={"debug": True})
        return config.model_copy(update={"web": updated_web})
    return config
