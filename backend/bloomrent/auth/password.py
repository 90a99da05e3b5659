"""Password hashing (passlib, PBKDF2-SHA256)."""

from passlib.hash import pbkdf2_sha256


def hash_password(plain: str) -> str:
    return pbkdf2_sha256.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return pbkdf2_sha256.verify(plain, hashed)
    except ValueError:
        # Malformed hash in the DB
        return False
