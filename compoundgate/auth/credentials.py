"""Password hashing and strength rules for owner accounts.

Hashes are scrypt-derived keys stored as ``hex(salt):hex(key)``; the format is
shared with records written before this service existed, so its parameters
are fixed.
"""

import hashlib
import hmac
import secrets
import string
from dataclasses import dataclass, field

SCRYPT_N = 16384
SCRYPT_R = 8
SCRYPT_P = 1
KEY_LENGTH = 64
SALT_BYTES = 16

MIN_PASSWORD_LENGTH = 8
SPECIAL_CHARACTERS = "!@#$%^&*()_+-=[]{};':\"\\|,.<>/?"


@dataclass(frozen=True)
class PasswordStrength:
    is_valid: bool
    errors: list[str] = field(default_factory=list)


def _derive(password: str, salt: bytes) -> bytes:
    return hashlib.scrypt(
        password.encode("utf-8"),
        salt=salt,
        n=SCRYPT_N,
        r=SCRYPT_R,
        p=SCRYPT_P,
        dklen=KEY_LENGTH,
    )


def hash_password(password: str) -> str:
    salt = secrets.token_bytes(SALT_BYTES)
    return f"{salt.hex()}:{_derive(password, salt).hex()}"


def verify_password(password: str, stored: str | None) -> bool:
    """Constant-time check of ``password`` against a stored hash.

    Malformed stored values verify as False instead of raising.
    """
    if not stored or ":" not in stored:
        return False
    salt_hex, _, key_hex = stored.partition(":")
    try:
        salt = bytes.fromhex(salt_hex)
        expected = bytes.fromhex(key_hex)
    except ValueError:
        return False
    if not salt or len(expected) != KEY_LENGTH:
        return False
    return hmac.compare_digest(_derive(password, salt), expected)


def validate_password_strength(password: str) -> PasswordStrength:
    errors = []
    if len(password) < MIN_PASSWORD_LENGTH:
        errors.append(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )
    if not any(c in string.ascii_uppercase for c in password):
        errors.append("Password must contain at least one uppercase letter")
    if not any(c in string.ascii_lowercase for c in password):
        errors.append("Password must contain at least one lowercase letter")
    if not any(c in string.digits for c in password):
        errors.append("Password must contain at least one number")
    if not any(c in SPECIAL_CHARACTERS for c in password):
        errors.append("Password must contain at least one special character")
    return PasswordStrength(is_valid=not errors, errors=errors)


def generate_random_password(length: int = 12) -> str:
    """Random password that always passes ``validate_password_strength``."""
    if length < MIN_PASSWORD_LENGTH:
        raise ValueError(f"length must be at least {MIN_PASSWORD_LENGTH}")
    pools = [
        string.ascii_uppercase,
        string.ascii_lowercase,
        string.digits,
        SPECIAL_CHARACTERS,
    ]
    alphabet = "".join(pools)
    chars = [secrets.choice(pool) for pool in pools]
    chars += [secrets.choice(alphabet) for _ in range(length - len(chars))]
    secrets.SystemRandom().shuffle(chars)
    return "".join(chars)
