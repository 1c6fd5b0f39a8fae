"""Shared test fixtures: in-memory SQLite settings, sessions, app client and user factory."""

import unittest

from fastapi.testclient import TestClient
from pydantic import SecretStr
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.database import create_db_engine, create_session_factory
from app.core.security import hash_password
from app.main import create_app
from app.models import Base, User, UserRole

TEST_PASSWORD = "Secret123"


def make_settings(**overrides: object) -> Settings:
    """Settings for tests: in-memory SQLite, cheap bcrypt, fixed secret, no .env file."""
    values: dict[str, object] = {
        "APP_ENV": "dev",
        "DATABASE_URL": "sqlite://",
        "JWT_SECRET": SecretStr("test-secret"),
        "BCRYPT_ROUNDS": 4,
        "CORS_ORIGIN": "http://localhost:5173",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_session(settings: Settings | None = None) -> Session:
    """Fresh in-memory database with the schema created; caller closes the session."""
    engine = create_db_engine(settings or make_settings())
    Base.metadata.create_all(engine)
    return create_session_factory(engine)()


def make_client(settings: Settings | None = None) -> TestClient:
    app = create_app(settings or make_settings())
    Base.metadata.create_all(app.state.engine)
    return TestClient(app)


def add_user(
    db: Session,
    email: str = "jane@example.com",
    password: str = TEST_PASSWORD,
    first_name: str = "Jane",
    last_name: str = "Doe",
    role: UserRole = UserRole.USER,
    is_active: bool = True,
) -> User:
    user = User(
        email=email,
        password_hash=hash_password(password, rounds=4),
        first_name=first_name,
        last_name=last_name,
        role=role,
        is_active=is_active,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def session_for(client: TestClient) -> Session:
    """A session bound to the app's engine, for arranging data behind the API."""
    return client.app.state.session_factory()


class ApiTestCase(unittest.TestCase):
    """Base for HTTP tests: a fresh app and database per test, plus login helpers."""

    settings_overrides: dict = {}

    def setUp(self) -> None:
        self.client = make_client(make_settings(**self.settings_overrides))

    def add_user(self, **kwargs) -> int:
        db = session_for(self.client)
        try:
            return add_user(db, **kwargs).id
        finally:
            db.close()

    def login(self, email: str = "jane@example.com", password: str = TEST_PASSWORD) -> dict:
        response = self.client.post(
            "/api/auth/login", json={"email": email, "password": password}
        )
        self.assertEqual(response.status_code, 200, response.text)
        self.assert_no_password(response)
        return response.json()["data"]

    def auth_headers(self, token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"}

    def assert_no_password(self, response) -> None:
        """No key in the body names a password and no bcrypt hash leaks into it."""

        def keys(node):
            if isinstance(node, dict):
                for key, value in node.items():
                    yield key
                    yield from keys(value)
            elif isinstance(node, list):
                for item in node:
                    yield from keys(item)

        for key in keys(response.json()):
            self.assertNotIn("password", key.lower())
        self.assertNotIn("$2b$", response.text)
