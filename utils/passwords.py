"""Password hashing with passlib"""

from passlib.hash import pbkdf2_sha256


def hash_password(password: str) -> str:
    return pbkdf2_sha256.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    try:
        return pbkdf2_sha256.verify(password, hashed)
    except ValueError:
        # Stored value is not a pbkdf2_sha256 hash
        return False
