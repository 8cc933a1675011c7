"""Integration tests for authentication endpoints."""

from __future__ import annotations

from fastapi import status
from fastapi.testclient import TestClient

from hirehub.core.auth import Role
from tests.utils import InMemoryCache, RecordingMailer, seed_user

ADA = {
    "firstName": "Ada",
    "lastName": "Lovelace",
    "email": "ada@example.com",
    "password": "password123",
}


def _login(client: TestClient, email: str = ADA["email"], password: str = ADA["password"]):
    return client.post("/auth/login", json={"email": email, "password": password})


class TestRegisterEndpoint:
    def test_register_success(self, test_client: TestClient, mailer: RecordingMailer) -> None:
        response = test_client.post("/auth/register", json=ADA)

        assert response.status_code == status.HTTP_201_CREATED
        body = response.json()
        assert body["message"] == "User registered"
        assert body["user_id"]
        assert mailer.subjects() == ["Welcome to HireHub"]

    def test_register_duplicate_email(self, test_client: TestClient) -> None:
        test_client.post("/auth/register", json=ADA)

        response = test_client.post("/auth/register", json={**ADA, "email": "ADA@example.com"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "Email already registered"

    def test_register_lists_every_invalid_field(self, test_client: TestClient) -> None:
        response = test_client.post(
            "/auth/register",
            json={"firstName": "Al", "email": "not-an-email", "password": "123"},
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        body = response.json()
        assert body["detail"] == "Validation failed"
        fields = {error["field"] for error in body["errors"]}
        assert {"firstName", "lastName", "email", "password"} <= fields

    def test_register_rejects_privileged_role(self, test_client: TestClient) -> None:
        response = test_client.post("/auth/register", json={**ADA, "role": "admin"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_register_survives_mail_outage(self, test_client: TestClient) -> None:
        test_client.app.state.mailer = RecordingMailer(fail=True)

        response = test_client.post("/auth/register", json=ADA)

        assert response.status_code == status.HTTP_201_CREATED


class TestLoginEndpoint:
    def test_login_success_sets_refresh_cookie(self, test_client: TestClient) -> None:
        test_client.post("/auth/register", json=ADA)

        response = _login(test_client)

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["message"] == "Login successful"
        assert body["token_type"] == "bearer"
        assert body["expires_in"] == 900
        assert body["user"]["email"] == "ada@example.com"
        assert body["user"]["last_login_at"] is not None
        assert "hashed_password" not in body["user"]

        cookie = response.headers["set-cookie"]
        assert "refresh_token=" in cookie
        assert "HttpOnly" in cookie
        assert "Path=/auth" in cookie
        assert "SameSite=strict" in cookie

    def test_login_wrong_password(self, test_client: TestClient) -> None:
        test_client.post("/auth/register", json=ADA)

        response = _login(test_client, password="wrongpassword")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["detail"] == "Invalid email or password"

    def test_login_unknown_email_gets_same_message(self, test_client: TestClient) -> None:
        response = _login(test_client, email="ghost@example.com")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["detail"] == "Invalid email or password"

    def test_inactive_account_is_forbidden(self, test_client: TestClient) -> None:
        seed_user(test_client, Role.EMPLOYEE, email="gone@example.com", is_active=False)

        response = _login(test_client, email="gone@example.com")

        assert response.status_code == status.HTTP_403_FORBIDDEN


class TestTokenLifecycle:
    def test_scenario_register_login_refresh_logout(self, test_client: TestClient) -> None:
        registered = test_client.post("/auth/register", json=ADA)
        assert registered.status_code == status.HTTP_201_CREATED
        user_id = registered.json()["user_id"]

        login = _login(test_client)
        assert login.status_code == status.HTTP_200_OK
        access_token = login.json()["access_token"]
        refresh_token = login.cookies["refresh_token"]
        assert access_token and refresh_token

        test_client.cookies.set("refresh_token", refresh_token)
        refreshed = test_client.post("/auth/refresh")
        assert refreshed.status_code == status.HTTP_200_OK
        assert refreshed.json()["access_token"]
        assert refreshed.json()["user"]["id"] == user_id

        logout = test_client.post(
            "/auth/logout", headers={"Authorization": f"Bearer {access_token}"}
        )
        assert logout.status_code == status.HTTP_200_OK
        assert logout.json()["message"] == "Logged out"
        cleared = logout.headers["set-cookie"]
        assert 'refresh_token=""' in cleared or "refresh_token=;" in cleared
        assert "Max-Age=0" in cleared

        test_client.cookies.set("refresh_token", refresh_token)
        assert test_client.post("/auth/refresh").status_code == status.HTTP_401_UNAUTHORIZED

        me = test_client.get("/auth/me", headers={"Authorization": f"Bearer {access_token}"})
        assert me.status_code == status.HTTP_401_UNAUTHORIZED
        assert me.json()["detail"] == "Token revoked"

    def test_refresh_without_cookie(self, test_client: TestClient) -> None:
        response = test_client.post("/auth/refresh")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_me_returns_profile(self, test_client: TestClient) -> None:
        test_client.post("/auth/register", json=ADA)
        token = _login(test_client).json()["access_token"]

        response = test_client.get("/auth/me", headers={"Authorization": token})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["user"]["first_name"] == "Ada"

    def test_refresh_token_is_not_an_access_token(self, test_client: TestClient) -> None:
        test_client.post("/auth/register", json=ADA)
        refresh_token = _login(test_client).cookies["refresh_token"]

        response = test_client.get(
            "/auth/me", headers={"Authorization": f"Bearer {refresh_token}"}
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.headers["www-authenticate"] == "Bearer"

    def test_revocation_check_fails_open(
        self, test_client: TestClient, cache: InMemoryCache
    ) -> None:
        test_client.post("/auth/register", json=ADA)
        token = _login(test_client).json()["access_token"]
        cache.available = False

        response = test_client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == status.HTTP_200_OK
