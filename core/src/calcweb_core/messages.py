from __future__ import annotations

from typing import Any, Final

# English catalogue. Placeholders use the %name% form.
CATALOGUE: Final[dict[str, str]] = {
    "cookie_banner.accepted": "Thank you. Your acceptance of the cookie policy has been recorded.",
    "cookie_banner.message": (
        "This site uses cookies to keep you signed in and to remember your preferences."
    ),
    "cookie_banner.accept": "Accept",
    "security.login.title": "Sign in",
    "security.login.success": "Welcome back %username%, you are connected to %appname%.",
    "security.login.invalid": "Invalid username or password.",
    "security.login.disabled": "This account is disabled.",
    "security.logout.success": "You have been disconnected from %appname%.",
    "security.login.required": "Please sign in to continue.",
    "error.title": "An error occurred",
    "error.configuration": "The application is not configured correctly.",
    "error.generic": "The server encountered an unexpected condition.",
}


def trans(key: str, **params: Any) -> str:
    """Translate ``key`` using the catalogue; unknown keys render as the key itself."""

    text = CATALOGUE.get(key, key)
    for name, value in params.items():
        text = text.replace(f"%{name}%", str(value))
    return text
