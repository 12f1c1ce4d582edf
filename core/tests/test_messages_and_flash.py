from __future__ import annotations

from calcweb_core.flash import FlashQueue
from calcweb_core.messages import trans


def test_trans_formats_placeholders() -> None:
    assert trans("security.logout.success", appname="Calculation") == (
        "You have been disconnected from Calculation."
    )
    assert trans("no.such.key") == "no.such.key"


def test_flash_queue_is_drained_once() -> None:
    session: dict = {}
    flash = FlashQueue(session)
    flash.push_success("security.login.success", username="alice")
    flash.push("info", "security.login.required")

    assert len(flash.peek()) == 2
    assert flash.pop_all() == [
        {"kind": "success", "key": "security.login.success", "params": {"username": "alice"}},
        {"kind": "info", "key": "security.login.required", "params": {}},
    ]
    assert flash.pop_all() == []
    assert session == {}
