"""
Create a user (e.g. first admin). Run from project root:
  python -m app.scripts.create_user EMAIL PASSWORD FIRST_NAME LAST_NAME [role]
Example:
  python -m app.scripts.create_user admin@example.com your-secure-password Ada Admin admin
"""
import argparse
import sys

from dotenv import load_dotenv

from app.core.config import get_settings
from app.core.database import create_db_engine, create_session_factory
from app.core.errors import ValidationError
from app.models.user import UserRole
from app.repositories.user import UserRepository
from app.schemas.user import UserCreate
from app.services.users import UserService


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a Thales API user.")
    parser.add_argument("email", help="Email address (unique)")
    parser.add_argument("password", help="Password (6-128 chars)")
    parser.add_argument("first_name", help="First name (2-100 chars)")
    parser.add_argument("last_name", help="Last name (2-100 chars)")
    parser.add_argument(
        "role", nargs="?", default="user", choices=[r.value for r in UserRole]
    )
    args = parser.parse_args(argv)

    settings = get_settings()
    engine = create_db_engine(settings)
    db = create_session_factory(engine)()
    try:
        service = UserService(UserRepository(db), settings)
        try:
            user = service.create_user(
                UserCreate(
                    email=args.email,
                    password=args.password,
                    first_name=args.first_name,
                    last_name=args.last_name,
                    role=UserRole(args.role),
                )
            )
        except ValidationError as e:
            print(e.message, file=sys.stderr)
            return 1
        print(f"Created user '{user.email}' with role '{user.role.value}'.")
        return 0
    finally:
        db.close()
        engine.dispose()


if __name__ == "__main__":
    load_dotenv()
    sys.exit(main())
