from __future__ import annotations

from collections.abc import MutableMapping
from typing import Any, Final

from calcweb_core.security.errors import AuthenticationError
from calcweb_core.security.users import AuthenticatedUser

LAST_USERNAME_KEY: Final[str] = "_security.last_username"
LAST_ERROR_KEY: Final[str] = "_security.last_error"
USER_KEY: Final[str] = "_security.user"


class AuthenticationUtils:
    """Read access to the last login attempt recorded by the firewall."""

    def __init__(self, session: MutableMapping[str, Any]) -> None:
        self._session = session

    def get_last_username(self) -> str | None:
        value = self._session.get(LAST_USERNAME_KEY)
        return str(value) if value else None

    def get_last_authentication_error(self, *, clear: bool = True) -> AuthenticationError | None:
        # Shown once: reading the error consumes it unless clear=False.
        if clear:
            data = self._session.pop(LAST_ERROR_KEY, None)
        else:
            data = self._session.get(LAST_ERROR_KEY)
        if not isinstance(data, dict):
            return None
        return AuthenticationError.from_session(data)


def record_failed_attempt(
    session: MutableMapping[str, Any], username: str, error: AuthenticationError
) -> None:
    # A failed attempt never leaves an earlier login active.
    session.pop(USER_KEY, None)
    session[LAST_USERNAME_KEY] = username
    session[LAST_ERROR_KEY] = error.to_session()


def get_session_user(session: MutableMapping[str, Any]) -> AuthenticatedUser | None:
    return AuthenticatedUser.from_session(session.get(USER_KEY))


def set_session_user(session: MutableMapping[str, Any], user: AuthenticatedUser) -> None:
    session[USER_KEY] = user.to_session()
    session.pop(LAST_ERROR_KEY, None)
