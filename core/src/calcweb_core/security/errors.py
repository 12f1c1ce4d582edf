from __future__ import annotations

from typing import Any


class ConfigurationError(RuntimeError):
    """The routing/security wiring of the deployment is wrong.

    Never caught locally: it must reach the outer request handler (and the logs).
    """


class AuthenticationError(Exception):
    """A failed authentication attempt, kept for re-display on the login form."""

    message_key = "security.login.invalid"

    def __init__(self, message: str = "", *, message_data: dict[str, Any] | None = None) -> None:
        super().__init__(message or self.message_key)
        self.message_data: dict[str, Any] = dict(message_data or {})

    def to_session(self) -> dict[str, Any]:
        return {
            "type": type(self).__name__,
            "message": str(self),
            "message_data": self.message_data,
        }

    @classmethod
    def from_session(cls, data: dict[str, Any]) -> AuthenticationError:
        error_cls = _ERROR_TYPES.get(str(data.get("type") or ""), AuthenticationError)
        return error_cls(str(data.get("message") or ""), message_data=data.get("message_data"))


class BadCredentialsError(AuthenticationError):
    message_key = "security.login.invalid"


class DisabledAccountError(AuthenticationError):
    message_key = "security.login.disabled"


_ERROR_TYPES: dict[str, type[AuthenticationError]] = {
    cls.__name__: cls for cls in (AuthenticationError, BadCredentialsError, DisabledAccountError)
}
