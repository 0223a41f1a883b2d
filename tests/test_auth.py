"""Tests for sign-up, sign-in and sign-out."""

from unittest.mock import MagicMock

import pytest
from fastapi import HTTPException

from app.modules.auth.service import AuthService, _AUTH_USER_CACHE


@pytest.fixture(autouse=True)
def clear_user_cache():
    _AUTH_USER_CACHE.clear()
    yield
    _AUTH_USER_CACHE.clear()


def auth_user(user_id: str, email: str, metadata: dict = None) -> MagicMock:
    user = MagicMock()
    user.id = user_id
    user.email = email
    user.user_metadata = metadata or {}
    user.app_metadata = {}
    user.created_at = "2025-07-12T09:00:00+00:00"
    user.updated_at = None
    return user


def sign_in_response(user: MagicMock, token: str) -> MagicMock:
    response = MagicMock()
    response.user = user
    response.session.access_token = token
    return response


class TestRegister:
    def test_metadata_carries_name_and_role(self, test_client, fake_db) -> None:
        fake_db.auth.sign_up.return_value = MagicMock(user=auth_user("new-user", "sam@example.com"))

        response = test_client.post("/api/v1/auth/register", json={
            "email": "sam@example.com", "password": "secret1", "full_name": "Sam Signup", "role": "admin",
        })

        assert response.status_code == 201
        assert response.json()["user_id"] == "new-user"
        payload = fake_db.auth.sign_up.call_args[0][0]
        assert payload["options"]["data"] == {"full_name": "Sam Signup", "role": "admin"}

    def test_role_defaults_to_user(self, test_client, fake_db) -> None:
        fake_db.auth.sign_up.return_value = MagicMock(user=auth_user("new-user", "sam@example.com"))
        test_client.post("/api/v1/auth/register", json={
            "email": "sam@example.com", "password": "secret1", "full_name": "Sam Signup",
        })
        assert fake_db.auth.sign_up.call_args[0][0]["options"]["data"]["role"] == "user"

    def test_existing_account(self, test_client, fake_db) -> None:
        fake_db.auth.sign_up.side_effect = Exception("User already registered")
        response = test_client.post("/api/v1/auth/register", json={
            "email": "sam@example.com", "password": "secret1", "full_name": "Sam Signup",
        })
        assert response.status_code == 400

    @pytest.mark.parametrize("body", [
        {"email": "sam@example.com", "password": "short", "full_name": "Sam"},
        {"email": "not-an-email", "password": "secret1", "full_name": "Sam"},
        {"email": "sam@example.com", "password": "secret1", "full_name": "Sam", "role": "owner"},
    ])
    def test_invalid_input(self, test_client, body) -> None:
        assert test_client.post("/api/v1/auth/register", json=body).status_code == 422


class TestLogin:
    def test_login_returns_token_and_resolved_role(self, test_client, fake_db, role_cache) -> None:
        user_id = fake_db.add_user("Ada Admin", role="admin")
        fake_db.auth.sign_in_with_password.return_value = sign_in_response(
            auth_user(user_id, "ada@example.com"), "ada-token"
        )

        response = test_client.post("/api/v1/auth/login", json={"email": "ada@example.com", "password": "secret1"})

        assert response.status_code == 200
        body = response.json()
        assert body["access_token"] == "ada-token"
        assert body["role"] == "admin"
        assert role_cache.get("ada-token") == "admin"
        fake_db.auth.get_user.assert_not_called()

    def test_bad_credentials(self, test_client, fake_db) -> None:
        fake_db.auth.sign_in_with_password.side_effect = Exception("Invalid login credentials")
        response = test_client.post("/api/v1/auth/login", json={"email": "x@example.com", "password": "nope"})
        assert response.status_code == 401


class TestLogout:
    def test_logout_drops_cached_role(self, test_client, fake_db, role_cache) -> None:
        role_cache.set("ada-token", "ada", "admin")
        response = test_client.post("/api/v1/auth/logout", headers={"Authorization": "Bearer ada-token"})

        assert response.status_code == 200
        assert role_cache.get("ada-token") is None
        fake_db.auth.sign_out.assert_called_once()


class TestCurrentUser:
    def test_user_lookup_is_cached_per_token(self, fake_db) -> None:
        fake_db.auth.get_user.return_value = MagicMock(user=auth_user("u1", "u1@example.com"))
        service = AuthService(fake_db)

        assert service.get_current_user("token")["id"] == "u1"
        assert service.get_current_user("token")["id"] == "u1"
        assert fake_db.auth.get_user.call_count == 1

    def test_expired_token(self, fake_db) -> None:
        fake_db.auth.get_user.side_effect = Exception("JWT expired")
        with pytest.raises(HTTPException) as exc:
            AuthService(fake_db).get_current_user("old-token")
        assert exc.value.status_code == 401
