"""HTTP tests for /api/users and /health through the full application stack."""

import asyncio
import uuid

import pytest
from fastapi.testclient import TestClient

from identity_service.main import create_application
from identity_service.shared.config.settings import get_settings
from identity_service.shared.core.security import get_token_issuer

PASSWORD = "right-password"


def register(client, username="a", email="a@x.com", password=PASSWORD, **fields):
    return client.post(
        "/api/users/register",
        json={"username": username, "email": email, "password": password, **fields},
    )


def login(client, email="a@x.com", password=PASSWORD):
    return client.post("/api/users/login", json={"email": email, "password": password})


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user(client):
    response = register(client, firstName="Ada")
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def auth(client, user):
    return bearer(login(client).json())


class TestRegistrationScenario:

    def test_register_conflict_and_login(self, client):
        first = register(client, username="a", email="a@x.com")
        assert first.status_code == 201
        created = first.json()
        assert first.headers["location"].endswith(f"/api/users/{created['id']}")

        duplicate = register(client, username="b", email="a@x.com")
        assert duplicate.status_code == 400
        assert duplicate.json()["error"]["code"] == "CONFLICT"

        wrong = login(client, password="wrong-password")
        assert wrong.status_code == 401
        assert wrong.json()["error"]["message"] == "Invalid credentials."

        right = login(client)
        assert right.status_code == 200
        token = right.json()
        assert isinstance(token, str)
        assert get_token_issuer().verify(token)["sub"] == created["id"]

    def test_response_hides_credentials_and_uses_camel_case(self, client):
        body = register(client, firstName="Ada", phoneNumber="555-0100").json()

        assert "passwordHash" not in body
        assert "password" not in body
        assert "isDeleted" not in body
        assert body["firstName"] == "Ada"
        assert body["phoneNumber"] == "555-0100"
        assert body["emailConfirmed"] is False
        assert body["createdBy"] == "anonymous"
        assert body["createdAt"]

    def test_login_with_registered_mixed_case_email(self, client):
        created = register(client, email="Bob@Example.COM")
        assert created.status_code == 201

        response = login(client, email="Bob@Example.COM")

        assert response.status_code == 200
        assert get_token_issuer().verify(response.json())["sub"] == created.json()["id"]
        confirmed = client.post(
            "/api/users/confirm-email", json={"email": "Bob@Example.COM", "token": "t"}
        )
        assert confirmed.status_code == 200

    def test_malformed_registration_is_bad_request(self, client):
        response = client.post("/api/users/register", json={"username": "a", "email": "not-an-email"})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"


class TestAuthentication:

    def test_missing_token_rejected(self, client):
        response = client.get("/api/users")

        assert response.status_code == 401
        error = response.json()["error"]
        assert error["code"] == "UNAUTHORIZED"
        assert error["request_id"] == response.headers["x-request-id"]

    def test_invalid_token_rejected(self, client, user):
        assert client.get("/api/users", headers=bearer("garbage")).status_code == 401

    def test_request_id_is_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "trace-123"})
        assert response.headers["x-request-id"] == "trace-123"
        assert "x-response-time" in response.headers


class TestReads:

    def test_list_users(self, client, auth, user):
        register(client, username="b", email="b@x.com")

        response = client.get("/api/users", headers=auth)

        assert response.status_code == 200
        assert sorted(u["username"] for u in response.json()) == ["a", "b"]

    def test_get_user(self, client, auth, user):
        response = client.get(f"/api/users/{user['id']}", headers=auth)

        assert response.status_code == 200
        assert response.json()["email"] == "a@x.com"

    def test_get_unknown_user_not_found(self, client, auth):
        response = client.get(f"/api/users/{uuid.uuid4()}", headers=auth)

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    def test_get_profile(self, client, auth, user):
        response = client.get("/api/users/profile", headers=auth)

        assert response.status_code == 200
        assert response.json()["id"] == user["id"]


class TestWrites:

    def test_update_profile(self, client, auth, user):
        response = client.put("/api/users/profile", headers=auth, json={"lastName": "Lovelace"})
        assert response.status_code == 204

        profile = client.get("/api/users/profile", headers=auth).json()
        assert profile["lastName"] == "Lovelace"
        assert profile["firstName"] == "Ada"
        assert profile["modifiedBy"] == user["id"]

    def test_update_profile_of_someone_else_unauthorized(self, client, auth, user):
        other = register(client, username="b", email="b@x.com").json()

        response = client.put(
            "/api/users/profile", headers=auth, json={"id": other["id"], "firstName": "Eve"}
        )

        assert response.status_code == 401

    def test_update_user_id_mismatch(self, client, auth, user):
        response = client.put(
            f"/api/users/{user['id']}",
            headers=auth,
            json={"id": str(uuid.uuid4()), "username": "a", "email": "a@x.com"},
        )

        assert response.status_code == 400
        assert client.get(f"/api/users/{user['id']}", headers=auth).json()["modifiedAt"] is None

    def test_update_user(self, client, auth, user):
        response = client.put(
            f"/api/users/{user['id']}",
            headers=auth,
            json={"id": user["id"], "username": "a2", "email": "a@x.com", "emailConfirmed": True},
        )
        assert response.status_code == 204

        stored = client.get(f"/api/users/{user['id']}", headers=auth).json()
        assert stored["username"] == "a2"
        assert stored["emailConfirmed"] is True

    def test_delete_user(self, client, auth, user):
        other = register(client, username="b", email="b@x.com").json()

        assert client.delete(f"/api/users/{other['id']}", headers=auth).status_code == 204
        assert client.get(f"/api/users/{other['id']}", headers=auth).status_code == 404
        assert client.delete(f"/api/users/{other['id']}", headers=auth).status_code == 404

    def test_update_password(self, client, auth, user):
        wrong = client.post(
            "/api/users/update-password",
            headers=auth,
            json={"currentPassword": "nope", "newPassword": "next-password"},
        )
        assert wrong.status_code == 400
        assert login(client).status_code == 200

        right = client.post(
            "/api/users/update-password",
            headers=auth,
            json={"currentPassword": PASSWORD, "newPassword": "next-password"},
        )
        assert right.status_code == 204
        assert login(client).status_code == 401
        assert login(client, password="next-password").status_code == 200


class TestEmailFlows:

    def test_confirmation_flow(self, client, auth, user):
        issued = client.post("/api/users/send-confirmation-email", json="a@x.com")
        assert issued.status_code == 200
        assert issued.json()["email"] == "a@x.com"
        assert issued.json()["token"]

        confirmed = client.post(
            "/api/users/confirm-email", json={"email": "a@x.com", "token": issued.json()["token"]}
        )
        assert confirmed.status_code == 200

        assert client.get("/api/users/profile", headers=auth).json()["emailConfirmed"] is True

    def test_confirm_unknown_email_not_found(self, client):
        response = client.post("/api/users/confirm-email", json={"email": "no@x.com", "token": "t"})
        assert response.status_code == 404

    def test_reset_password_flow(self, client, user):
        issued = client.post("/api/users/send-reset-password-email", json="a@x.com")
        assert issued.status_code == 200

        reset = client.post(
            "/api/users/reset-password",
            json={"email": "a@x.com", "token": "not-checked", "newPassword": "fresh-password"},
        )
        assert reset.status_code == 200
        assert login(client, password="fresh-password").status_code == 200

    def test_reset_unknown_email_not_found(self, client):
        response = client.post(
            "/api/users/reset-password",
            json={"email": "no@x.com", "token": "t", "newPassword": "pw"},
        )
        assert response.status_code == 404


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["components"]["database"]["status"] == "healthy"


class TestRequestDeadline:

    @pytest.fixture
    def slow_client(self, database_url, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", database_url)
        monkeypatch.setenv("AUTO_CREATE_SCHEMA", "true")
        monkeypatch.setenv("REQUEST_TIMEOUT_SECONDS", "0.5")
        get_settings.cache_clear()

        app = create_application()

        @app.get("/slow")
        async def slow():
            await asyncio.sleep(2)
            return {"done": True}

        with TestClient(app) as test_client:
            yield test_client

        get_settings.cache_clear()

    def test_slow_request_times_out(self, slow_client):
        response = slow_client.get("/slow", headers={"X-Request-ID": "deadline-1"})

        assert response.status_code == 504
        error = response.json()["error"]
        assert error["code"] == "REQUEST_TIMEOUT"
        assert error["request_id"] == "deadline-1"
        assert error["details"]["timeout_seconds"] == 0.5

    def test_fast_request_within_deadline(self, slow_client):
        assert slow_client.get("/health").status_code == 200
