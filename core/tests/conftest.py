from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from calcweb_core.security.passwords import hash_password

PASSWORD = "s3cret-Passw0rd"


def write_config(home: Path, payload: dict[str, Any]) -> None:
    config_dir = home / "config"
    config_dir.mkdir(parents=True, exist_ok=True)
    (config_dir / "core.json").write_text(json.dumps(payload), encoding="utf-8")


@pytest.fixture(scope="session")
def password_hash() -> str:
    # Low cost factor keeps the suite fast.
    return hash_password(PASSWORD, rounds=4)


@pytest.fixture
def calcweb_home(tmp_path: Path, monkeypatch, password_hash: str) -> Path:
    monkeypatch.setenv("CALCWEB_HOME", str(tmp_path))
    monkeypatch.delenv("CALCWEB_DEBUG", raising=False)
    write_config(
        tmp_path,
        {
            "security": {
                "users": [
                    {"username": "alice", "password_hash": password_hash},
                    {"username": "bob", "password_hash": password_hash, "enabled": False},
                ]
            }
        },
    )
    return tmp_path
