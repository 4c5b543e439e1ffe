import pytest
import requests

from smartleader import auth, config
from smartleader.auth import Identity, require_admin, sign_in, verify_session
from smartleader.errors import AuthError, PermissionDeniedError


class FakeResponse:
    def __init__(self, status_code, body):
        self.status_code = status_code
        self._body = body
        self.text = str(body)

    def json(self):
        return self._body


def test_admin_role_comes_from_claims(admin, visitor):
    assert admin.is_admin
    assert not visitor.is_admin
    assert Identity(uid="u", claims={"role": "editor"}).role == "editor"


def test_require_admin(admin, visitor):
    assert require_admin(admin) is admin
    with pytest.raises(PermissionDeniedError):
        require_admin(visitor)
    with pytest.raises(AuthError):
        require_admin(None)


def test_sign_in_verifies_returned_token(monkeypatch):
    calls = {}

    def fake_post(url, params=None, json=None, timeout=None):
        calls.update(url=url, params=params, json=json)
        return FakeResponse(200, {"idToken": "token-123", "localId": "uid-1"})

    monkeypatch.setattr(requests, "post", fake_post)
    monkeypatch.setattr(auth, "verify_session", lambda token: Identity(uid="uid-1", claims={"role": "admin", "t": token}))

    identity, token = sign_in("admin@smartleader.com", "secret", api_key="key-1")

    assert token == "token-123"
    assert identity.is_admin
    assert calls["params"] == {"key": "key-1"}
    assert calls["json"]["returnSecureToken"] is True


def test_sign_in_failure_message(monkeypatch):
    monkeypatch.setattr(
        requests, "post",
        lambda *a, **kw: FakeResponse(400, {"error": {"message": "INVALID_PASSWORD"}}),
    )
    with pytest.raises(AuthError, match="INVALID_PASSWORD"):
        sign_in("admin@smartleader.com", "wrong", api_key="key-1")


def test_sign_in_network_error(monkeypatch):
    def boom(*args, **kwargs):
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(requests, "post", boom)
    with pytest.raises(AuthError, match="connection refused"):
        sign_in("admin@smartleader.com", "secret", api_key="key-1")


def test_sign_in_needs_api_key(monkeypatch):
    monkeypatch.setattr(config, "FIREBASE_API_KEY", None)
    with pytest.raises(AuthError, match="FIREBASE_API_KEY"):
        sign_in("admin@smartleader.com", "secret")


def test_verify_session_maps_claims(monkeypatch):
    claims = {"user_id": "uid-7", "sub": "uid-7", "email": "ops@smartleader.com", "role": "admin"}
    monkeypatch.setattr(auth.google_id_token, "verify_firebase_token", lambda token, request, audience=None: claims)

    identity = verify_session("token", project_id="demo-project")

    assert identity.uid == "uid-7"
    assert identity.email == "ops@smartleader.com"
    assert identity.is_admin


def test_verify_session_rejects_bad_token(monkeypatch):
    def reject(token, request, audience=None):
        raise ValueError("Token expired")

    monkeypatch.setattr(auth.google_id_token, "verify_firebase_token", reject)
    with pytest.raises(AuthError, match="Token expired"):
        verify_session("stale", project_id="demo-project")
