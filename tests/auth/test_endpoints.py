"""Tests for authentication endpoints.

Exercises every route through the Flask test client, including the success
and error envelopes.
"""

import jwt as pyjwt

from quizauth_core.config import settings
from quizauth_core.db import get_core
from quizauth_core.utils import isodatetime

TEST_PASSWORD = "Secret123"


def _assert_error(response, status_code):
    data = response.get_json()
    assert response.status_code == status_code
    assert data["success"] is False
    assert data["statusCode"] == status_code
    assert isinstance(data["message"], str)
    return data


# ============================================================================
# POST /register
# ============================================================================


class TestRegister:
    """Tests for POST /register."""

    def test_register_success(self, client, api_prefix):
        response = client.post(
            f"{api_prefix}/register",
            json={"username": "carol", "email": "carol@example.com", "password": TEST_PASSWORD}
        )
        assert response.status_code == 201

        data = response.get_json()
        assert data["success"] is True
        assert data["data"]["token"]
        user = data["data"]["user"]
        assert user["username"] == "carol"
        assert user["role"] == settings.default_role
        assert user["profile"] is None
        assert user["stats"]["totalQuestions"] == 0
        assert "password" not in user

    def test_register_token_names_new_user(self, client, registered):
        token, user = registered

        payload = pyjwt.decode(token, settings.jwt_secret_key, algorithms=["HS256"])
        assert payload["sub"] == user["id"]

    def test_register_same_username_twice(self, client, registered, api_prefix):
        response = client.post(
            f"{api_prefix}/register",
            json={"username": "bob", "email": "bob2@example.com", "password": TEST_PASSWORD}
        )

        data = _assert_error(response, 400)
        assert data["message"] == "Username or email already exists"

    def test_register_same_email_different_case(self, client, registered, api_prefix):
        response = client.post(
            f"{api_prefix}/register",
            json={"username": "bobby", "email": "BOB@example.com", "password": TEST_PASSWORD}
        )

        _assert_error(response, 400)

    def test_register_missing_fields(self, client, api_prefix):
        response = client.post(f"{api_prefix}/register", json={"username": "carol"})

        data = _assert_error(response, 400)
        fields = {error["field"] for error in data["details"]["errors"]}
        assert fields == {"email", "password"}

    def test_register_validation_error_hides_password(self, client, api_prefix):
        response = client.post(
            f"{api_prefix}/register",
            json={"username": "carol", "email": "not-an-email", "password": TEST_PASSWORD}
        )

        data = _assert_error(response, 400)
        assert data["details"]["received"]["password"] == "***"
        assert TEST_PASSWORD not in response.get_data(as_text=True)


# ============================================================================
# POST /login
# ============================================================================


class TestLogin:
    """Tests for POST /login."""

    def test_login_success(self, client, registered, api_prefix):
        _token, user = registered

        response = client.post(
            f"{api_prefix}/login",
            json={"username": "bob", "password": TEST_PASSWORD}
        )
        assert response.status_code == 200

        data = response.get_json()["data"]
        assert data["user"]["id"] == user["id"]
        assert data["token"]

    def test_login_with_email(self, client, registered, api_prefix):
        response = client.post(
            f"{api_prefix}/login",
            json={"username": "bob@example.com", "password": TEST_PASSWORD}
        )
        assert response.status_code == 200

    def test_login_wrong_password(self, client, registered, api_prefix):
        response = client.post(
            f"{api_prefix}/login",
            json={"username": "bob", "password": "WrongPassword"}
        )
        _assert_error(response, 401)

    def test_login_unknown_user(self, client, api_prefix):
        response = client.post(
            f"{api_prefix}/login",
            json={"username": "nobody", "password": TEST_PASSWORD}
        )
        _assert_error(response, 401)

    def test_login_records_last_login(self, client, registered, api_prefix):
        _token, user = registered
        before = isodatetime.to_datetime(isodatetime.now()).replace(microsecond=0)

        response = client.post(
            f"{api_prefix}/login",
            json={"username": "bob", "password": TEST_PASSWORD}
        )

        stored = get_core().user.get_by_id(user["id"]).last_login_at
        assert isodatetime.to_datetime(stored) >= before
        assert response.get_json()["data"]["user"]["stats"]["lastLoginAt"] == stored

    def test_login_accepts_form_data(self, client, registered, api_prefix):
        response = client.post(
            f"{api_prefix}/login",
            data={"username": "bob", "password": TEST_PASSWORD}
        )
        assert response.status_code == 200


# ============================================================================
# POST /refresh-token
# ============================================================================


class TestRefreshToken:
    """Tests for POST /refresh-token."""

    def test_refresh_success(self, client, registered, api_prefix):
        token, user = registered

        response = client.post(f"{api_prefix}/refresh-token", json={"refreshToken": token})
        assert response.status_code == 200

        new_token = response.get_json()["data"]["token"]
        payload = pyjwt.decode(new_token, settings.jwt_secret_key, algorithms=["HS256"])
        assert payload["sub"] == user["id"]

    def test_refresh_missing_token(self, client, api_prefix):
        response = client.post(f"{api_prefix}/refresh-token", json={})

        data = _assert_error(response, 400)
        assert data["message"] == "Refresh token not provided"

    def test_refresh_tampered_token(self, client, registered, api_prefix):
        token, _user = registered
        payload = pyjwt.decode(token, options={"verify_signature": False})
        forged = pyjwt.encode(payload, "forged-secret-key-for-quizauth-tests", algorithm="HS256")

        response = client.post(f"{api_prefix}/refresh-token", json={"refreshToken": forged})

        data = _assert_error(response, 401)
        assert data["details"]["code"] == "invalid_token"

    def test_refresh_for_deleted_user(self, client, registered, api_prefix):
        token, user = registered
        with get_core(atomic=True) as core:
            core._conn.execute("DELETE FROM users WHERE id = ?", (user["id"],))

        response = client.post(f"{api_prefix}/refresh-token", json={"refreshToken": token})

        _assert_error(response, 401)


# ============================================================================
# POST /change-password
# ============================================================================


class TestChangePassword:
    """Tests for POST /change-password."""

    def test_change_password_success(self, client, auth_headers, api_prefix):
        response = client.post(
            f"{api_prefix}/change-password",
            json={"currentPassword": TEST_PASSWORD, "newPassword": "NewPass456"},
            headers=auth_headers
        )
        assert response.status_code == 200
        assert response.get_json() == {"success": True, "message": "Password changed successfully"}

        login = client.post(
            f"{api_prefix}/login",
            json={"username": "bob", "password": "NewPass456"}
        )
        assert login.status_code == 200

    def test_change_password_wrong_current(self, client, auth_headers, api_prefix):
        response = client.post(
            f"{api_prefix}/change-password",
            json={"currentPassword": "wrong", "newPassword": "NewPass456"},
            headers=auth_headers
        )
        _assert_error(response, 401)

    def test_change_password_requires_auth(self, client, registered, api_prefix):
        response = client.post(
            f"{api_prefix}/change-password",
            json={"currentPassword": TEST_PASSWORD, "newPassword": "NewPass456"}
        )
        _assert_error(response, 401)


# ============================================================================
# Password reset
# ============================================================================


class TestPasswordReset:
    """Tests for POST /reset-password-request and POST /reset-password."""

    def test_reset_request_known_email(self, client, registered, api_prefix):
        response = client.post(
            f"{api_prefix}/reset-password-request",
            json={"email": "bob@example.com"}
        )
        assert response.status_code == 200
        assert response.get_json()["success"] is True

    def test_reset_request_unknown_email(self, client, api_prefix):
        response = client.post(
            f"{api_prefix}/reset-password-request",
            json={"email": "nobody@example.com"}
        )
        _assert_error(response, 404)

    def test_reset_password_success(self, client, registered, api_prefix):
        token, _user = registered

        response = client.post(
            f"{api_prefix}/reset-password",
            json={"token": token, "newPassword": "Reset789"}
        )
        assert response.status_code == 200

        login = client.post(
            f"{api_prefix}/login",
            json={"username": "bob", "password": "Reset789"}
        )
        assert login.status_code == 200

    def test_reset_password_invalid_token(self, client, api_prefix):
        response = client.post(
            f"{api_prefix}/reset-password",
            json={"token": "bogus", "newPassword": "Reset789"}
        )
        _assert_error(response, 401)


# ============================================================================
# GET /me and PATCH /profile
# ============================================================================


class TestProfile:
    """Tests for GET /me and PATCH /profile."""

    def test_me(self, client, registered, auth_headers, api_prefix):
        _token, user = registered

        response = client.get(f"{api_prefix}/me", headers=auth_headers)
        assert response.status_code == 200
        assert response.get_json()["data"]["user"] == user

    def test_me_requires_auth(self, client, api_prefix):
        _assert_error(client.get(f"{api_prefix}/me"), 401)

    def test_me_for_deleted_user(self, client, registered, auth_headers, api_prefix):
        _token, user = registered
        with get_core(atomic=True) as core:
            core._conn.execute("DELETE FROM users WHERE id = ?", (user["id"],))

        _assert_error(client.get(f"{api_prefix}/me", headers=auth_headers), 404)

    def test_update_profile(self, client, auth_headers, api_prefix):
        response = client.patch(
            f"{api_prefix}/profile",
            json={"nickname": "Bobby", "avatar": "https://example.com/b.png"},
            headers=auth_headers
        )
        assert response.status_code == 200
        assert response.get_json()["data"]["user"]["profile"] == {
            "nickname": "Bobby",
            "avatar": "https://example.com/b.png",
        }

        me = client.get(f"{api_prefix}/me", headers=auth_headers)
        assert me.get_json()["data"]["user"]["profile"]["nickname"] == "Bobby"

    def test_update_profile_partial(self, client, auth_headers, api_prefix):
        client.patch(
            f"{api_prefix}/profile",
            json={"nickname": "Bobby", "avatar": "b.png"},
            headers=auth_headers
        )
        response = client.patch(
            f"{api_prefix}/profile",
            json={"avatar": "c.png"},
            headers=auth_headers
        )

        assert response.get_json()["data"]["user"]["profile"] == {"nickname": "Bobby", "avatar": "c.png"}

    def test_update_profile_requires_auth(self, client, api_prefix):
        _assert_error(client.patch(f"{api_prefix}/profile", json={"nickname": "x"}), 401)


# ============================================================================
# Availability checks
# ============================================================================


class TestAvailability:
    """Tests for GET /check-username and GET /check-email."""

    def test_username_taken(self, client, registered, api_prefix):
        response = client.get(f"{api_prefix}/check-username", query_string={"username": "bob"})

        assert response.status_code == 200
        assert response.get_json() == {"success": True, "available": False}

    def test_username_free(self, client, registered, api_prefix):
        response = client.get(f"{api_prefix}/check-username", query_string={"username": "zoe"})
        assert response.get_json()["available"] is True

    def test_email_taken(self, client, registered, api_prefix):
        response = client.get(f"{api_prefix}/check-email", query_string={"email": "bob@example.com"})
        assert response.get_json()["available"] is False

    def test_email_free(self, client, api_prefix):
        response = client.get(f"{api_prefix}/check-email", query_string={"email": "zoe@example.com"})
        assert response.get_json()["available"] is True

    def test_no_cache_headers(self, client, api_prefix):
        for path, param in (("check-username", "username"), ("check-email", "email")):
            response = client.get(f"{api_prefix}/{path}", query_string={param: "zoe"})

            assert response.headers["Cache-Control"] == "no-cache, no-store, must-revalidate"
            assert response.headers["Pragma"] == "no-cache"
            assert response.headers["Expires"] == "0"

    def test_missing_parameter(self, client, api_prefix):
        _assert_error(client.get(f"{api_prefix}/check-username"), 400)
        _assert_error(client.get(f"{api_prefix}/check-email", query_string={"email": ""}), 400)


# ============================================================================
# Password length limits
# ============================================================================


class TestPasswordByteLimit:
    """Passwords longer than bcrypt accepts are rejected with 400, not 500."""

    LONG_PASSWORD = "p" * 100
    MULTIBYTE_PASSWORD = "é" * 40  # 40 characters, 80 bytes

    def test_register_long_password(self, client, api_prefix):
        response = client.post(
            f"{api_prefix}/register",
            json={"username": "carol", "email": "carol@example.com", "password": self.LONG_PASSWORD}
        )

        data = _assert_error(response, 400)
        assert data["details"]["errors"][0]["field"] == "password"

        check = client.get(f"{api_prefix}/check-username", query_string={"username": "carol"})
        assert check.get_json()["available"] is True

    def test_change_password_long_password(self, client, auth_headers, api_prefix):
        response = client.post(
            f"{api_prefix}/change-password",
            json={"currentPassword": TEST_PASSWORD, "newPassword": "p" * 73},
            headers=auth_headers
        )
        _assert_error(response, 400)

    def test_reset_password_multibyte_password(self, client, registered, api_prefix):
        token, _user = registered

        response = client.post(
            f"{api_prefix}/reset-password",
            json={"token": token, "newPassword": self.MULTIBYTE_PASSWORD}
        )
        _assert_error(response, 400)

        login = client.post(
            f"{api_prefix}/login",
            json={"username": "bob", "password": TEST_PASSWORD}
        )
        assert login.status_code == 200
