from datetime import datetime, timedelta

import pytest
from jose import jwt
from starlette.datastructures import Headers

from app.auth import create_access_token, get_bearer_token, validate_jwt
from app.errors import AuthError


@pytest.mark.parametrize(
    "headers",
    [{}, {"Authorization": ""}, {"Authorization": "Bearer"}, {"Authorization": "Bearer   "}, {"Authorization": "Basic abc"}],
)
def test_get_bearer_token_rejects(headers):
    with pytest.raises(AuthError):
        get_bearer_token(Headers(headers))


def test_get_bearer_token():
    assert get_bearer_token(Headers({"Authorization": "Bearer abc.def.ghi"})) == "abc.def.ghi"


def test_validate_jwt_round_trip(settings):
    token = create_access_token("user-1", "a@example.com", settings)
    assert validate_jwt(token, settings.secret_key) == "user-1"


def test_validate_jwt_wrong_secret(settings):
    token = create_access_token("user-1", "a@example.com", settings)
    with pytest.raises(AuthError):
        validate_jwt(token, "another-secret")


def test_validate_jwt_expired(settings):
    payload = {"sub": "user-1", "type": "access", "exp": datetime.utcnow() - timedelta(minutes=1)}
    token = jwt.encode(payload, settings.secret_key, algorithm="HS256")
    with pytest.raises(AuthError):
        validate_jwt(token, settings.secret_key)


def test_validate_jwt_requires_access_type(settings):
    payload = {"sub": "user-1", "type": "refresh", "exp": datetime.utcnow() + timedelta(minutes=5)}
    token = jwt.encode(payload, settings.secret_key, algorithm="HS256")
    with pytest.raises(AuthError):
        validate_jwt(token, settings.secret_key)


def test_register_and_login(client):
    res = client.post("/api/users", json={"email": "New@Example.com", "password": "hunter22"})
    assert res.status_code == 201
    assert res.json()["email"] == "new@example.com"
    assert "password" not in res.json()

    dup = client.post("/api/users", json={"email": "new@example.com", "password": "hunter22"})
    assert dup.status_code == 409

    bad = client.post("/api/login", json={"email": "new@example.com", "password": "wrong-pass"})
    assert bad.status_code == 401

    ok = client.post("/api/login", json={"email": "new@example.com", "password": "hunter22"})
    assert ok.status_code == 200
    assert ok.json()["token_type"] == "bearer"
    assert ok.json()["access_token"]


def test_register_requires_password_length(client):
    res = client.post("/api/users", json={"email": "x@example.com", "password": "123"})
    assert res.status_code == 400
    assert "error" in res.json()
