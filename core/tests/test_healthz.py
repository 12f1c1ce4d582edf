from __future__ import annotations

from pathlib import Path

from fastapi.testclient import TestClient

from calcweb_core.app import create_app


def test_healthz_ok(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("CALCWEB_HOME", str(tmp_path))

    with TestClient(create_app()) as client:
        response = client.get("/healthz")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


def test_responses_carry_security_headers(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("CALCWEB_HOME", str(tmp_path))

    with TestClient(create_app()) as client:
        response = client.get("/healthz")
        assert response.headers["x-frame-options"] == "SAMEORIGIN"
        assert response.headers["x-content-type-options"] == "nosniff"
        assert response.headers["referrer-policy"] == "same-origin"
        assert "default-src 'self'" in response.headers["content-security-policy"]

        # Firewall redirects are covered too.
        redirect = client.get("/", follow_redirects=False)
        assert redirect.status_code == 302
        assert redirect.headers["x-frame-options"] == "SAMEORIGIN"

