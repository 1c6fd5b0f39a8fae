"""
Seed the default admin and test accounts (idempotent). Run from project root:
  python -m app.scripts.seed
"""

import logging
import sys

from dotenv import load_dotenv
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.database import create_db_engine, create_session_factory
from app.core.logging import configure_logging
from app.core.security import hash_password
from app.models.user import UserRole
from app.repositories.user import UserRepository

logger = logging.getLogger(__name__)

SEED_USERS = (
    {
        "email": "admin@thales.com",
        "password": "admin123",
        "first_name": "Admin",
        "last_name": "User",
        "role": UserRole.ADMIN,
    },
    {
        "email": "user@thales.com",
        "password": "user123",
        "first_name": "Test",
        "last_name": "User",
        "role": UserRole.USER,
    },
)


def seed_users(db: Session, settings: Settings) -> list[str]:
    """Create each seed account that does not exist yet; return the emails created."""
    repo = UserRepository(db)
    created: list[str] = []
    for entry in SEED_USERS:
        if repo.find_by_email(entry["email"], include_deleted=True) is not None:
            logger.info("Seed user already exists: %s", entry["email"])
            continue
        repo.create(
            email=entry["email"],
            password_hash=hash_password(entry["password"], settings.BCRYPT_ROUNDS),
            first_name=entry["first_name"],
            last_name=entry["last_name"],
            role=entry["role"],
            is_active=True,
        )
        logger.info("Seed user created: %s", entry["email"])
        created.append(entry["email"])
    return created


def main() -> int:
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    engine = create_db_engine(settings)
    db = create_session_factory(engine)()
    try:
        created = seed_users(db, settings)
        logger.info("Seeding completed: users_created=%s", len(created))
        return 0
    except Exception as e:
        logger.exception("Seeding failed: %s", e)
        return 1
    finally:
        db.close()
        engine.dispose()


if __name__ == "__main__":
    load_dotenv()
    sys.exit(main())
