from __future__ import annotations

from collections.abc import MutableMapping
from typing import Any, Final, Literal

FlashKind = Literal["success", "info", "warning", "danger"]

FLASH_SESSION_KEY: Final[str] = "_flashes"


class FlashQueue:
    """Messages queued for display on the next rendered page.

    Stored in the (signed cookie) session as JSON-compatible dicts.
    """

    def __init__(self, session: MutableMapping[str, Any]) -> None:
        self._session = session

    def push(self, kind: FlashKind, key: str, **params: Any) -> None:
        queued = list(self._session.get(FLASH_SESSION_KEY) or [])
        queued.append({"kind": kind, "key": key, "params": params})
        self._session[FLASH_SESSION_KEY] = queued

    def push_success(self, key: str, **params: Any) -> None:
        self.push("success", key, **params)

    def peek(self) -> list[dict[str, Any]]:
        return list(self._session.get(FLASH_SESSION_KEY) or [])

    def pop_all(self) -> list[dict[str, Any]]:
        queued = self.peek()
        self._session.pop(FLASH_SESSION_KEY, None)
        return queued
