"""
Password hashing with passlib (bcrypt).
"""

from passlib.context import CryptContext

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
)

MIN_PASSWORD_LENGTH = 8


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a plain-text password; malformed hashes count as a mismatch."""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        return False


def password_needs_rehash(hashed_password: str) -> bool:
    """True when the stored hash uses outdated bcrypt parameters."""
    return pwd_context.needs_update(hashed_password)
