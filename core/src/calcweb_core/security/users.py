from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Final

from calcweb_core.config import SecurityConfig, UserConfig
from calcweb_core.security.errors import BadCredentialsError, DisabledAccountError
from calcweb_core.security.passwords import verify_password


# Each role implies the roles listed for it, transitively.
ROLE_HIERARCHY: Final[dict[str, tuple[str, ...]]] = {
    "ROLE_SUPER_ADMIN": ("ROLE_ADMIN",),
    "ROLE_ADMIN": ("ROLE_USER",),
}


def reachable_roles(roles: tuple[str, ...] | list[str]) -> frozenset[str]:
    seen: set[str] = set()
    pending = list(roles)
    while pending:
        role = pending.pop()
        if role in seen:
            continue
        seen.add(role)
        pending.extend(ROLE_HIERARCHY.get(role, ()))
    return frozenset(seen)


@dataclass(frozen=True)
class AuthenticatedUser:
    """User attached to the session once the firewall accepted the login."""

    username: str
    roles: tuple[str, ...] = ("ROLE_USER",)

    def has_role(self, role: str) -> bool:
        return role in reachable_roles(self.roles)

    def to_session(self) -> dict[str, Any]:
        return {"username": self.username, "roles": list(self.roles)}

    @classmethod
    def from_session(cls, data: Mapping[str, Any] | None) -> AuthenticatedUser | None:
        if not isinstance(data, Mapping):
            return None
        username = str(data.get("username") or "").strip()
        if not username:
            return None
        roles = tuple(str(r) for r in (data.get("roles") or ()))
        return cls(username=username, roles=roles)


class UserProvider:
    """Accounts declared under ``security.users`` in core.json."""

    def __init__(self, users: list[UserConfig]) -> None:
        self._users = {u.username: u for u in users}

    @classmethod
    def from_config(cls, config: SecurityConfig) -> UserProvider:
        return cls(config.users)

    def load_user(self, username: str) -> AuthenticatedUser | None:
        user = self._users.get(username)
        if user is None or not user.enabled:
            return None
        return AuthenticatedUser(username=user.username, roles=tuple(user.roles))

    def authenticate(self, username: str, password: str) -> AuthenticatedUser:
        if not username:
            raise BadCredentialsError("The username must be a non-empty string.")
        if not password:
            raise BadCredentialsError("The password must be a non-empty string.")

        user = self._users.get(username)
        # Same error for unknown user and wrong password.
        if user is None or not verify_password(password, user.password_hash):
            raise BadCredentialsError("Invalid credentials.")
        if not user.enabled:
            raise DisabledAccountError("Account is disabled.")
        return AuthenticatedUser(username=user.username, roles=tuple(user.roles))
