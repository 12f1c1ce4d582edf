from __future__ import annotations

from pathlib import Path

from fastapi.testclient import TestClient

from calcweb_core.app import SESSION_COOKIE, create_app
from calcweb_core.security.remember_me import REMEMBER_ME_COOKIE
from conftest import PASSWORD, write_config


def _login(client: TestClient, username: str = "alice", password: str = PASSWORD, **extra):
    data = {"username": username, "password": password, **extra}
    return client.post("/login", data=data, follow_redirects=False)


def test_login_page_is_public(calcweb_home: Path) -> None:
    with TestClient(create_app()) as client:
        r = client.get("/login")
        assert r.status_code == 200
        assert 'name="username"' in r.text
        assert "checked" not in r.text
        assert 'id="cookie-banner"' not in r.text


def test_anonymous_users_are_sent_to_login(calcweb_home: Path) -> None:
    with TestClient(create_app()) as client:
        for path in ("/", "/policy/accept"):
            r = client.get(path, follow_redirects=False)
            assert r.status_code == 302
            assert r.headers["location"] == "/login"

        page = client.get("/login")
        assert "Please sign in to continue." in page.text

        api = client.get("/", headers={"Accept": "application/json"})
        assert api.status_code == 401
        assert api.json()["error"]["code"] == "unauthorized"


def test_successful_login_redirects_home(calcweb_home: Path) -> None:
    with TestClient(create_app()) as client:
        r = _login(client)
        assert r.status_code == 302
        assert r.headers["location"] == "/"
        assert REMEMBER_ME_COOKIE not in r.headers.get("set-cookie", "")

        home = client.get("/")
        assert home.status_code == 200
        assert "Signed in as <strong>alice</strong>" in home.text
        assert "Welcome back alice, you are connected to Calculation." in home.text


def test_login_returns_to_the_requested_page(calcweb_home: Path) -> None:
    with TestClient(create_app()) as client:
        client.get("/policy/accept", follow_redirects=False)
        r = _login(client)
        assert r.headers["location"] == "/policy/accept"


def test_failed_login_redisplays_username_and_error_once(calcweb_home: Path) -> None:
    with TestClient(create_app()) as client:
        r = _login(client, password="wrong")
        assert r.status_code == 302
        assert r.headers["location"] == "/login"

        page = client.get("/login")
        assert 'value="alice"' in page.text
        assert "Invalid username or password." in page.text

        again = client.get("/login")
        assert 'value="alice"' in again.text
        assert "Invalid username or password." not in again.text

        assert client.get("/", follow_redirects=False).status_code == 302


def test_unknown_user_gets_the_same_error(calcweb_home: Path) -> None:
    with TestClient(create_app()) as client:
        page = client.post("/login", data={"username": "mallory", "password": PASSWORD})
        assert page.status_code == 200
        assert 'value="mallory"' in page.text
        assert "Invalid username or password." in page.text


def test_disabled_user_cannot_login(calcweb_home: Path) -> None:
    with TestClient(create_app()) as client:
        page = client.post("/login", data={"username": "bob", "password": PASSWORD})
        assert "This account is disabled." in page.text
        assert client.get("/", follow_redirects=False).status_code == 302


def test_non_form_post_to_login_renders_the_view(calcweb_home: Path) -> None:
    with TestClient(create_app()) as client:
        r = client.post("/login", json={"username": "alice", "password": PASSWORD})
        assert r.status_code == 200
        assert 'name="username"' in r.text
        assert client.get("/", follow_redirects=False).status_code == 302


def test_debug_mode_prechecks_remember_me(calcweb_home: Path, monkeypatch) -> None:
    monkeypatch.setenv("CALCWEB_DEBUG", "1")

    with TestClient(create_app()) as client:
        page = client.get("/login")
        assert 'value="1" checked' in page.text


def test_policy_acceptance_round_trip(calcweb_home: Path) -> None:
    with TestClient(create_app()) as client:
        _login(client)

        home = client.get("/")
        assert 'id="cookie-banner"' in home.text

        r = client.post("/policy/accept", follow_redirects=False)
        assert r.status_code == 302
        assert r.headers["location"] == "/"
        set_cookie = r.headers["set-cookie"]
        assert "POLICY_ACCEPTED=1" in set_cookie
        assert "Path=/" in set_cookie
        assert "Domain" not in set_cookie

        after = client.get("/")
        assert after.status_code == 200
        assert 'id="cookie-banner"' not in after.text
        assert "Your acceptance of the cookie policy has been recorded." in after.text

        # Accepting again is harmless and yields the same cookie.
        r2 = client.get("/policy/accept", follow_redirects=False)
        assert r2.status_code == 302
        assert r2.headers["location"] == "/"
        assert client.cookies.get("POLICY_ACCEPTED") == "1"


def test_remember_me_restores_the_session(calcweb_home: Path) -> None:
    with TestClient(create_app()) as client:
        r = _login(client, remember_me="1")
        assert REMEMBER_ME_COOKIE in r.headers.get("set-cookie", "")

        client.cookies.delete(SESSION_COOKIE)
        home = client.get("/", follow_redirects=False)
        assert home.status_code == 200
        assert "alice" in home.text


def test_tampered_remember_me_cookie_is_ignored(calcweb_home: Path) -> None:
    with TestClient(create_app()) as client:
        client.cookies.set(REMEMBER_ME_COOKIE, "not-a-signed-value")
        r = client.get("/", follow_redirects=False)
        assert r.status_code == 302
        assert r.headers["location"] == "/login"


def test_logout_clears_remember_me(calcweb_home: Path) -> None:
    with TestClient(create_app()) as client:
        _login(client, remember_me="1")

        out = client.post("/logout", follow_redirects=False)
        assert f"{REMEMBER_ME_COOKIE}=" in out.headers.get("set-cookie", "")

        client.cookies.delete(SESSION_COOKIE)
        assert client.get("/", follow_redirects=False).status_code == 302


def test_admin_sees_and_accepts_the_policy_banner(calcweb_home: Path, password_hash: str) -> None:
    write_config(
        calcweb_home,
        {
            "security": {
                "users": [
                    {"username": "root", "password_hash": password_hash, "roles": ["ROLE_ADMIN"]}
                ]
            }
        },
    )

    with TestClient(create_app()) as client:
        _login(client, username="root")

        home = client.get("/")
        assert 'id="cookie-banner"' in home.text

        r = client.post("/policy/accept", follow_redirects=False)
        assert r.status_code == 302
        assert "POLICY_ACCEPTED=1" in r.headers["set-cookie"]
        assert 'id="cookie-banner"' not in client.get("/").text


def test_failed_login_ends_the_previous_session(calcweb_home: Path) -> None:
    with TestClient(create_app()) as client:
        _login(client, remember_me="1")
        assert client.get("/", follow_redirects=False).status_code == 200

        r = _login(client, password="wrong")
        assert r.status_code == 302
        assert r.headers["location"] == "/login"
        assert f"{REMEMBER_ME_COOKIE}=" in r.headers.get("set-cookie", "")

        home = client.get("/", follow_redirects=False)
        assert home.status_code == 302
        assert home.headers["location"] == "/login"


def test_static_prefix_is_not_public(calcweb_home: Path) -> None:
    with TestClient(create_app()) as client:
        r = client.get("/static/app.css", follow_redirects=False)
        assert r.status_code == 302
        assert r.headers["location"] == "/login"
