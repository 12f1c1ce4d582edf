from __future__ import annotations

import json
from typing import Any, Final

from itsdangerous import BadSignature, BadTimeSignature, URLSafeTimedSerializer

from calcweb_core.config import CoreConfig
from calcweb_core.responses import CookieMutation

REMEMBER_ME_COOKIE: Final[str] = "REMEMBERME"
REMEMBER_ME_SALT: Final[str] = "calcweb-remember-me-v1"


def _serializer(config: CoreConfig) -> URLSafeTimedSerializer | None:
    if not config.security.session_secret:
        return None
    return URLSafeTimedSerializer(
        secret_key=config.security.session_secret, salt=REMEMBER_ME_SALT
    )


def encode_remember_me(config: CoreConfig, username: str) -> str | None:
    s = _serializer(config)
    if s is None:
        return None
    # Identity only; roles are reloaded from the user provider.
    raw = json.dumps({"u": username}, separators=(",", ":"), sort_keys=True)
    return s.dumps(raw)


def decode_remember_me(config: CoreConfig, value: str | None) -> str | None:
    if not value:
        return None
    s = _serializer(config)
    if s is None:
        return None
    try:
        raw = s.loads(value, max_age=config.security.remember_me_lifetime_seconds)
        data: Any = json.loads(raw)
    except (BadSignature, BadTimeSignature, ValueError):
        return None
    if not isinstance(data, dict):
        return None
    username = str(data.get("u") or "").strip()
    return username or None


def remember_me_cookie(config: CoreConfig, value: str) -> CookieMutation:
    return CookieMutation(
        name=REMEMBER_ME_COOKIE,
        value=value,
        path=config.web.cookie_path,
        max_age=config.security.remember_me_lifetime_seconds,
        secure=config.web.cookie_secure,
        httponly=True,
    )


def clear_remember_me_cookie(config: CoreConfig) -> CookieMutation:
    return CookieMutation(
        name=REMEMBER_ME_COOKIE,
        value="",
        path=config.web.cookie_path,
        max_age=0,
        secure=config.web.cookie_secure,
        httponly=True,
    )
