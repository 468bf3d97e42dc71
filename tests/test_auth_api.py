import pytest
from google.oauth2 import id_token

from app.core.config import settings


@pytest.fixture
def firebase_project(monkeypatch):
    monkeypatch.setattr(settings, "FIREBASE_PROJECT_ID", "mental-clarity-test")


def test_health_is_public(anonymous_client):
    body = anonymous_client.get("/api/health").json()

    assert body["status"] == "OK"
    assert "timestamp" in body
    assert body["environment"] == settings.ENVIRONMENT


@pytest.mark.parametrize("headers", [{}, {"Authorization": "Token abc"}, {"Authorization": "Bearer "}])
def test_missing_bearer_token_is_unauthorized(anonymous_client, headers):
    response = anonymous_client.get("/api/journal", headers=headers)

    assert response.status_code == 401
    assert response.json()["detail"] == "Unauthorized"


def test_unconfigured_verification_is_server_error(anonymous_client, monkeypatch):
    monkeypatch.setattr(settings, "FIREBASE_PROJECT_ID", None)

    response = anonymous_client.get("/api/journal", headers={"Authorization": "Bearer abc"})

    assert response.status_code == 500


def test_rejected_token_is_unauthorized(anonymous_client, firebase_project, monkeypatch):
    def reject(token, request, audience=None):
        raise ValueError("Token expired")

    monkeypatch.setattr(id_token, "verify_firebase_token", reject)

    response = anonymous_client.get("/api/mistakes", headers={"Authorization": "Bearer expired"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid token"


def test_verified_token_creates_user_once(anonymous_client, firebase_project, monkeypatch, mongo_db):
    seen = {}

    def accept(token, request, audience=None):
        seen["token"] = token
        seen["audience"] = audience
        return {"user_id": "firebase-uid-9", "email": "nine@example.com", "name": "Nine"}

    monkeypatch.setattr(id_token, "verify_firebase_token", accept)
    headers = {"Authorization": "Bearer good-token"}

    assert anonymous_client.get("/api/journal", headers=headers).status_code == 200
    assert anonymous_client.get("/api/journal", headers=headers).status_code == 200

    assert seen == {"token": "good-token", "audience": "mental-clarity-test"}
    users = list(mongo_db["users"].find())
    assert len(users) == 1
    assert users[0]["_id"] == "firebase-uid-9"
    assert users[0]["subscription"]["plan"] == "trial"


def test_profile_roundtrip(client):
    profile = client.get("/api/auth/profile").json()

    assert profile["_id"] == "user-1"
    assert profile["firebaseUid"] == "user-1"
    assert profile["email"] == "user-1@example.com"
    assert profile["subscription"]["isActive"] is False

    updated = client.put("/api/auth/profile", json={"name": "Linh"}).json()

    assert updated["name"] == "Linh"
    assert client.get("/api/auth/profile").json()["name"] == "Linh"


def test_profile_update_requires_fields(client):
    response = client.put("/api/auth/profile", json={})

    assert response.status_code == 400
    assert response.json()["detail"] == "No profile fields to update"
