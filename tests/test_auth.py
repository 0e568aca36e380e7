"""Tests for bearer token handling."""

from __future__ import annotations

import datetime

import jwt as pyjwt
from fastapi.testclient import TestClient

from soyuz.auth import JWTManager
from soyuz.core import SoyuzContainer
from soyuz.model import UserID


def encode(container: SoyuzContainer, **payload: object) -> str:
    secret = container.secrets.auth.jwt().get_secret_value()
    return pyjwt.encode(payload, secret, algorithm="HS256")


class TestJWTManager(object):
    def test_round_trip(self, jwt_manager: JWTManager) -> None:
        user_id = UserID()

        data = jwt_manager.decode_token(jwt_manager.create_access_token(user_id))

        assert data is not None
        assert data.user_id == user_id
        assert data.expires_at - data.issued_at == datetime.timedelta(minutes=60)

    def test_expired(self, jwt_manager: JWTManager) -> None:
        token = jwt_manager.create_access_token(UserID(), expires_delta=datetime.timedelta(seconds=-5))
        assert jwt_manager.decode_token(token) is None

    def test_wrong_secret(self, jwt_manager: JWTManager) -> None:
        now = int(datetime.datetime.now(datetime.UTC).timestamp())
        token = pyjwt.encode({"sub": str(UserID()), "iat": now, "exp": now + 60}, "other-secret", algorithm="HS256")
        assert jwt_manager.decode_token(token) is None

    def test_subject_must_be_user_key(self, container: SoyuzContainer, jwt_manager: JWTManager) -> None:
        """A verified token naming something other than a user is still rejected."""
        now = int(datetime.datetime.now(datetime.UTC).timestamp())
        token = encode(container, sub="someone@example.com", iat=now, exp=now + 60)
        assert jwt_manager.decode_token(token) is None

    def test_claims_required(self, container: SoyuzContainer, jwt_manager: JWTManager) -> None:
        token = encode(container, sub=str(UserID()))
        assert jwt_manager.decode_token(token) is None


class TestBearerDependency(object):
    def test_missing_header(self, client: TestClient) -> None:
        response = client.get("/api/assessments")

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    def test_expired_token(self, client: TestClient, jwt_manager: JWTManager) -> None:
        token = jwt_manager.create_access_token(UserID(), expires_delta=datetime.timedelta(seconds=-5))

        response = client.get("/api/assessments", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid or expired token"

    def test_valid_token(self, client: TestClient, auth_headers: dict[str, str]) -> None:
        response = client.get("/api/assessments", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["pagination"]["total"] == 0
