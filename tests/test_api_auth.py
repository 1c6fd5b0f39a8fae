"""HTTP tests for the auth endpoints, the response envelope and the health routes."""

import unittest

from app.models import UserRole
from app.repositories.user import UserRepository
from support import TEST_PASSWORD, ApiTestCase, session_for

REGISTRATION = {
    "email": "new@example.com",
    "password": "Passw0rd",
    "firstName": "New",
    "lastName": "User",
}


class TestRegister(ApiTestCase):
    def test_register_returns_201_envelope_without_password(self) -> None:
        response = self.client.post("/api/auth/register", json=REGISTRATION)
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["message"], "User registered successfully")
        data = body["data"]
        self.assertIn("accessToken", data)
        self.assertIn("refreshToken", data)
        user = data["user"]
        self.assertEqual(user["email"], "new@example.com")
        self.assertEqual(user["firstName"], "New")
        self.assertEqual(user["role"], "user")
        self.assertTrue(user["isActive"])
        self.assert_no_password(response)

    def test_register_ignores_requested_role(self) -> None:
        response = self.client.post(
            "/api/auth/register", json={**REGISTRATION, "role": "admin"}
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["data"]["user"]["role"], "user")

    def test_duplicate_email_is_400(self) -> None:
        self.client.post("/api/auth/register", json=REGISTRATION)
        response = self.client.post(
            "/api/auth/register", json={**REGISTRATION, "email": "NEW@example.com"}
        )
        self.assertEqual(response.status_code, 400)
        body = response.json()
        self.assertFalse(body["success"])
        self.assertEqual(body["error"], "Validation Error")
        self.assertEqual(body["message"], "User with this email already exists")

    def test_invalid_fields_are_400_with_details(self) -> None:
        response = self.client.post(
            "/api/auth/register", json={**REGISTRATION, "email": "nope", "password": "1"}
        )
        self.assertEqual(response.status_code, 400)
        fields = {d["field"] for d in response.json()["details"]}
        self.assertEqual(fields, {"email", "password"})

    def test_malformed_emails_are_400(self) -> None:
        for email in ("a,b@c..com", "<x>@y.z", "a@-b.com", "jane@example..com"):
            response = self.client.post(
                "/api/auth/register", json={**REGISTRATION, "email": email}
            )
            self.assertEqual(response.status_code, 400, email)
            self.assertEqual(response.json()["details"][0]["field"], "email")

    def test_missing_fields_are_400(self) -> None:
        response = self.client.post("/api/auth/register", json={"email": "a@example.com"})
        self.assertEqual(response.status_code, 400)
        body = response.json()
        self.assertFalse(body["success"])
        self.assertEqual(body["message"], "Invalid input data")


class TestLogin(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.user_id = self.add_user()

    def test_login_and_me(self) -> None:
        data = self.login()
        self.assertEqual(data["user"]["id"], self.user_id)
        response = self.client.get("/api/auth/me", headers=self.auth_headers(data["accessToken"]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["user"]["email"], "jane@example.com")
        self.assert_no_password(response)

    def test_wrong_password_is_401(self) -> None:
        response = self.client.post(
            "/api/auth/login", json={"email": "jane@example.com", "password": "wrong1"}
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["message"], "Invalid credentials")
        self.assertEqual(response.headers["WWW-Authenticate"], "Bearer")

    def test_blank_credentials_are_400(self) -> None:
        response = self.client.post("/api/auth/login", json={"email": "", "password": ""})
        self.assertEqual(response.status_code, 400)

    def test_deactivated_account_is_401(self) -> None:
        self.add_user(email="off@example.com", is_active=False)
        response = self.client.post(
            "/api/auth/login", json={"email": "off@example.com", "password": TEST_PASSWORD}
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["message"], "Account is deactivated")


class TestTokens(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.user_id = self.add_user()
        self.tokens = self.login()

    def test_me_requires_token(self) -> None:
        response = self.client.get("/api/auth/me")
        self.assertEqual(response.status_code, 401)
        self.assertFalse(response.json()["success"])

    def test_me_rejects_deleted_and_deactivated_users(self) -> None:
        headers = self.auth_headers(self.tokens["accessToken"])
        db = session_for(self.client)
        try:
            repo = UserRepository(db)
            repo.update(self.user_id, is_active=False)
            response = self.client.get("/api/auth/me", headers=headers)
            self.assertEqual(response.status_code, 401)
            self.assertEqual(response.json()["message"], "Account is deactivated")

            repo.update(self.user_id, is_active=True)
            repo.delete(self.user_id)
            response = self.client.get("/api/auth/me", headers=headers)
            self.assertEqual(response.status_code, 401)
            self.assertEqual(response.json()["message"], "User not found")
        finally:
            db.close()

    def test_me_rejects_garbage_and_refresh_tokens(self) -> None:
        for token in ("garbage", self.tokens["refreshToken"]):
            response = self.client.get("/api/auth/me", headers=self.auth_headers(token))
            self.assertEqual(response.status_code, 401)

    def test_refresh(self) -> None:
        response = self.client.post(
            "/api/auth/refresh", json={"refreshToken": self.tokens["refreshToken"]}
        )
        self.assertEqual(response.status_code, 200)
        data = response.json()["data"]
        me = self.client.get("/api/auth/me", headers=self.auth_headers(data["accessToken"]))
        self.assertEqual(me.status_code, 200)

    def test_refresh_with_access_token_is_401(self) -> None:
        response = self.client.post(
            "/api/auth/refresh", json={"refreshToken": self.tokens["accessToken"]}
        )
        self.assertEqual(response.status_code, 401)

    def test_refresh_without_token_is_400(self) -> None:
        response = self.client.post("/api/auth/refresh", json={})
        self.assertEqual(response.status_code, 400)

    def test_validate(self) -> None:
        response = self.client.post(
            "/api/auth/validate", json={"token": self.tokens["accessToken"]}
        )
        self.assertEqual(response.status_code, 200)
        payload = response.json()["data"]["payload"]
        self.assertEqual(payload["id"], self.user_id)
        self.assertEqual(payload["role"], "user")
        self.assertEqual(payload["type"], "access")

        response = self.client.post("/api/auth/validate", json={"token": "garbage"})
        self.assertEqual(response.status_code, 401)

    def test_logout(self) -> None:
        response = self.client.post(
            "/api/auth/logout", headers=self.auth_headers(self.tokens["accessToken"])
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["message"], "Logout successful")

    def test_change_password(self) -> None:
        response = self.client.post(
            "/api/auth/change-password",
            json={
                "currentPassword": TEST_PASSWORD,
                "newPassword": "Changed1",
                "confirmNewPassword": "Changed1",
            },
            headers=self.auth_headers(self.tokens["accessToken"]),
        )
        self.assertEqual(response.status_code, 200)
        self.login(password="Changed1")

    def test_request_id_is_echoed(self) -> None:
        response = self.client.get("/api/health", headers={"X-Request-ID": "abc123"})
        self.assertEqual(response.headers["X-Request-ID"], "abc123")


class TestHealth(ApiTestCase):
    def test_health_routes(self) -> None:
        for path in ("/api/health", "/health"):
            response = self.client.get(path)
            self.assertEqual(response.status_code, 200)
            body = response.json()
            self.assertEqual(body["status"], "ok")
            self.assertEqual(body["database"], "connected")
            self.assertEqual(body["environment"], "dev")

    def test_unknown_route_uses_error_envelope(self) -> None:
        response = self.client.get("/api/nope")
        self.assertEqual(response.status_code, 404)
        self.assertFalse(response.json()["success"])


class TestProdErrors(ApiTestCase):
    settings_overrides = {"APP_ENV": "prod"}

    def test_error_envelope_has_no_stack_outside_dev(self) -> None:
        self.add_user(role=UserRole.USER)
        response = self.client.post(
            "/api/auth/login", json={"email": "jane@example.com", "password": "bad-one"}
        )
        self.assertEqual(response.status_code, 401)
        self.assertNotIn("stack", response.json())


if __name__ == "__main__":
    unittest.main()
