from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

from calcweb_core.security.errors import AuthenticationError, ConfigurationError


class LastAuthenticationAttempt(Protocol):
    def get_last_username(self) -> str | None: ...

    def get_last_authentication_error(self) -> AuthenticationError | None: ...


@dataclass(frozen=True)
class LoginViewModel:
    form: dict[str, Any] = field(default_factory=dict)
    error: AuthenticationError | None = None

    @property
    def username(self) -> str | None:
        return self.form.get("username")

    @property
    def remember_me(self) -> bool:
        return bool(self.form.get("remember_me"))


def prepare_login_view(utils: LastAuthenticationAttempt, debug: bool) -> LoginViewModel:
    """Initial login form values plus the last authentication error, if any.

    In debug mode 'remember me' starts checked so development sessions survive restarts.
    """

    return LoginViewModel(
        form={"username": utils.get_last_username(), "remember_me": debug},
        error=utils.get_last_authentication_error(),
    )


def logout(logout_path: str = "/logout") -> None:
    """Route target for the logout path.

    The firewall answers logout requests itself; reaching this body means it is not
    installed or listens on another path.
    """

    raise ConfigurationError(
        f"Logout must be handled by the firewall on {logout_path!r}; "
        "check the security middleware configuration."
    )
