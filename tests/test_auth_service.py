"""Tests for AuthService: login, register, refresh, validate, logout and password change."""

import unittest
from unittest.mock import MagicMock

from app.core.errors import AppError, AuthenticationError, RepositoryError, ValidationError
from app.core.security import verify_password
from app.models import UserRole
from app.repositories.user import UserRepository
from app.schemas.auth import RegisterRequest
from app.services.auth import AuthService
from support import TEST_PASSWORD, add_user, make_session, make_settings


def _registration(**overrides: object) -> RegisterRequest:
    values: dict[str, object] = {
        "email": "New.User@Example.com ",
        "password": "Passw0rd",
        "first_name": "New",
        "last_name": "User",
    }
    values.update(overrides)
    return RegisterRequest(**values)


class AuthServiceTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.settings = make_settings()
        self.db = make_session(self.settings)
        self.repo = UserRepository(self.db)
        self.service = AuthService(self.repo, self.settings)

    def tearDown(self) -> None:
        self.db.close()


class TestRegister(AuthServiceTestCase):
    def test_register_creates_active_user_with_hashed_password(self) -> None:
        result = self.service.register(_registration())
        self.assertEqual(result.user.email, "new.user@example.com")
        self.assertEqual(result.user.role, UserRole.USER)
        self.assertTrue(result.user.is_active)
        stored = self.repo.find_by_email("new.user@example.com")
        self.assertNotEqual(stored.password_hash, "Passw0rd")
        self.assertTrue(verify_password("Passw0rd", stored.password_hash))
        self.assertEqual(self.service.validate_token(result.access_token).id, stored.id)

    def test_duplicate_email_fails_with_validation_error(self) -> None:
        self.service.register(_registration())
        with self.assertRaises(ValidationError) as ctx:
            self.service.register(_registration(email="new.user@example.com"))
        self.assertIn("already exists", ctx.exception.message)

    def test_duplicate_of_soft_deleted_email_fails(self) -> None:
        user = add_user(self.db, email="gone@example.com")
        self.repo.delete(user.id)
        with self.assertRaises(ValidationError):
            self.service.register(_registration(email="gone@example.com"))

    def test_malformed_fields_listed_together(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            self.service.register(
                _registration(email="not-an-email", password="123", first_name="A")
            )
        fields = {d["field"] for d in ctx.exception.details}
        self.assertEqual(fields, {"email", "password", "firstName"})

    def test_confirm_password_mismatch(self) -> None:
        with self.assertRaises(ValidationError):
            self.service.register(_registration(confirm_password="Different1"))

    def test_repository_failure_becomes_generic_error(self) -> None:
        repo = MagicMock()
        repo.find_by_email.side_effect = RepositoryError("boom")
        service = AuthService(repo, self.settings)
        with self.assertRaises(AppError) as ctx:
            service.register(_registration())
        self.assertEqual(ctx.exception.message, "Registration failed")
        self.assertEqual(ctx.exception.status_code, 500)


class TestLogin(AuthServiceTestCase):
    def test_correct_login_returns_pair_that_validates(self) -> None:
        user = add_user(self.db)
        result = self.service.login("JANE@example.com", TEST_PASSWORD)
        payload = self.service.validate_token(result.access_token)
        self.assertEqual(payload.id, user.id)
        self.assertEqual(payload.email, "jane@example.com")
        self.assertEqual(payload.role, "user")

    def test_wrong_password_fails(self) -> None:
        add_user(self.db)
        with self.assertRaises(AuthenticationError) as ctx:
            self.service.login("jane@example.com", "wrong-password")
        self.assertEqual(ctx.exception.message, "Invalid credentials")

    def test_unknown_user_fails_with_same_message(self) -> None:
        with self.assertRaises(AuthenticationError) as ctx:
            self.service.login("nobody@example.com", TEST_PASSWORD)
        self.assertEqual(ctx.exception.message, "Invalid credentials")

    def test_deactivated_user_cannot_log_in(self) -> None:
        add_user(self.db, is_active=False)
        with self.assertRaises(AuthenticationError) as ctx:
            self.service.login("jane@example.com", TEST_PASSWORD)
        self.assertEqual(ctx.exception.message, "Account is deactivated")

    def test_blank_credentials_are_a_validation_error(self) -> None:
        with self.assertRaises(ValidationError):
            self.service.login("  ", "")


class TestTokens(AuthServiceTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.user = add_user(self.db)
        self.result = self.service.login("jane@example.com", TEST_PASSWORD)

    def test_refresh_reissues_pair(self) -> None:
        pair = self.service.refresh_token(self.result.refresh_token)
        self.assertEqual(self.service.validate_token(pair.access_token).id, self.user.id)

    def test_refresh_uses_current_role(self) -> None:
        self.repo.update(self.user.id, role=UserRole.ADMIN)
        pair = self.service.refresh_token(self.result.refresh_token)
        self.assertEqual(self.service.validate_token(pair.access_token).role, "admin")

    def test_refresh_rejects_access_token(self) -> None:
        with self.assertRaises(AuthenticationError):
            self.service.refresh_token(self.result.access_token)

    def test_refresh_rejects_garbage(self) -> None:
        with self.assertRaises(AuthenticationError):
            self.service.refresh_token("not.a.token")

    def test_deactivated_user_cannot_refresh(self) -> None:
        self.repo.update(self.user.id, is_active=False)
        with self.assertRaises(AuthenticationError) as ctx:
            self.service.refresh_token(self.result.refresh_token)
        self.assertEqual(ctx.exception.message, "Invalid refresh token")

    def test_validate_rejects_deleted_user(self) -> None:
        self.repo.delete(self.user.id)
        with self.assertRaises(AuthenticationError):
            self.service.validate_token(self.result.access_token)

    def test_validate_rejects_refresh_token(self) -> None:
        with self.assertRaises(AuthenticationError):
            self.service.validate_token(self.result.refresh_token)


class TestLogoutAndPasswordChange(AuthServiceTestCase):
    def test_profile_requires_live_active_user(self) -> None:
        user = add_user(self.db)
        self.assertEqual(self.service.get_profile(user.id).id, user.id)
        self.repo.update(user.id, is_active=False)
        with self.assertRaises(AuthenticationError) as ctx:
            self.service.get_profile(user.id)
        self.assertEqual(ctx.exception.message, "Account is deactivated")
        self.repo.delete(user.id)
        with self.assertRaises(AuthenticationError):
            self.service.get_profile(user.id)

    def test_logout_existing_user_is_a_noop(self) -> None:
        user = add_user(self.db)
        self.service.logout(user.id)
        self.assertIsNotNone(self.repo.find_by_id(user.id))

    def test_logout_unknown_user_fails(self) -> None:
        with self.assertRaises(AuthenticationError):
            self.service.logout(999)

    def test_change_password(self) -> None:
        user = add_user(self.db)
        self.service.change_password(user.id, TEST_PASSWORD, "NewPass1", "NewPass1")
        self.service.login("jane@example.com", "NewPass1")
        with self.assertRaises(AuthenticationError):
            self.service.login("jane@example.com", TEST_PASSWORD)

    def test_change_password_requires_current_password(self) -> None:
        user = add_user(self.db)
        with self.assertRaises(AuthenticationError):
            self.service.change_password(user.id, "wrong", "NewPass1", "NewPass1")

    def test_change_password_confirmation_must_match(self) -> None:
        user = add_user(self.db)
        with self.assertRaises(ValidationError):
            self.service.change_password(user.id, TEST_PASSWORD, "NewPass1", "NewPass2")


if __name__ == "__main__":
    unittest.main()
