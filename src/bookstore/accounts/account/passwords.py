"""Password hashing through ``werkzeug.security``.

Hashes use salted PBKDF2-SHA256; the iteration count is read from
PASSWORD_HASH_ITERATIONS and recorded in the hash itself, so raising it later
keeps existing accounts valid.
"""

from protean.exceptions import ValidationError
from werkzeug.security import check_password_hash, generate_password_hash

from bookstore.utils.settings import password_hash_iterations

MIN_PASSWORD_LENGTH = 6


def validate_password(password: str | None) -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError({"password": [f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"]})


def hash_password(password: str) -> str:
    validate_password(password)
    return generate_password_hash(password, method=f"pbkdf2:sha256:{password_hash_iterations()}")


def verify_password(password: str | None, encoded: str | None) -> bool:
    if not password or not encoded:
        return False
    try:
        return check_password_hash(encoded, password)
    except ValueError:
        # Unknown hash method
        return False
