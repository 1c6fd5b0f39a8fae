"""Input rules shared by the auth and user services."""

from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from app.core.errors import ValidationError
from app.core.security import (
    EMAIL_MAX_LEN,
    NAME_MAX_LEN,
    NAME_MIN_LEN,
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
)

_email_adapter = TypeAdapter(EmailStr)


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def is_valid_email(email: str | None) -> bool:
    e = normalize_email(email)
    if not e or len(e) > EMAIL_MAX_LEN:
        return False
    try:
        parsed = _email_adapter.validate_python(e)
    except PydanticValidationError:
        return False
    # EmailStr also accepts the "Name <addr>" form; only a bare address is valid here.
    return parsed == e


def email_error(email: str | None) -> dict[str, str] | None:
    if not is_valid_email(email):
        return {"field": "email", "message": "Valid email is required"}
    return None


def password_error(password: str | None, field: str = "password") -> dict[str, str] | None:
    if not password or not (PASSWORD_MIN_LEN <= len(password) <= PASSWORD_MAX_LEN):
        return {
            "field": field,
            "message": (
                f"Password must be between {PASSWORD_MIN_LEN} and "
                f"{PASSWORD_MAX_LEN} characters long"
            ),
        }
    return None


def name_error(value: str | None, field: str, label: str) -> dict[str, str] | None:
    v = (value or "").strip()
    if not (NAME_MIN_LEN <= len(v) <= NAME_MAX_LEN):
        return {
            "field": field,
            "message": (
                f"{label} must be between {NAME_MIN_LEN} and {NAME_MAX_LEN} characters long"
            ),
        }
    return None


def raise_if_errors(errors: list[dict[str, str] | None]) -> None:
    """Raise one ValidationError listing every failed rule, joined into the message."""
    found = [e for e in errors if e is not None]
    if found:
        raise ValidationError(", ".join(e["message"] for e in found), details=found)


def validate_new_user(
    email: str | None,
    password: str | None,
    first_name: str | None,
    last_name: str | None,
) -> None:
    raise_if_errors(
        [
            email_error(email),
            password_error(password),
            name_error(first_name, "firstName", "First name"),
            name_error(last_name, "lastName", "Last name"),
        ]
    )
