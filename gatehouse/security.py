"""Password hashing and token generation primitives.

Password digests use scrypt in the format ``hex(salt):hex(derived_key)``,
where the hex salt string (not the raw bytes) is fed to scrypt.
"""

import hashlib
import hmac
import os
import secrets
import uuid

SALT_BYTES = 16
KEY_LENGTH = 64
TOKEN_BYTES = 32

# Compared against when no stored digest exists, so that a missing user
# costs the same scrypt work as a wrong password.
_DUMMY_DIGEST = f"{'0' * SALT_BYTES * 2}:{'0' * KEY_LENGTH * 2}"


class PasswordHasher:
    """Salted scrypt hashing with configurable cost."""

    def __init__(self, n: int = 16384, r: int = 16, p: int = 1):
        self.n = n
        self.r = r
        self.p = p

    def _derive(self, password: str, salt_hex: str) -> bytes:
        return hashlib.scrypt(
            password.encode("utf-8"),
            salt=salt_hex.encode("utf-8"),
            n=self.n,
            r=self.r,
            p=self.p,
            dklen=KEY_LENGTH,
            maxmem=128 * self.n * self.r * 2,
        )

    def hash(self, password: str) -> str:
        salt_hex = os.urandom(SALT_BYTES).hex()
        return f"{salt_hex}:{self._derive(password, salt_hex).hex()}"

    def compare(self, password: str, digest: str | None) -> bool:
        """Check a password against a stored digest in constant time.

        A missing or malformed digest still runs one derivation and returns
        False.
        """
        valid_format = True
        if not digest or digest.count(":") != 1:
            digest, valid_format = _DUMMY_DIGEST, False
        salt_hex, key_hex = digest.split(":")
        try:
            expected = bytes.fromhex(key_hex)
        except ValueError:
            expected, valid_format = bytes(KEY_LENGTH), False
        derived = self._derive(password, salt_hex)
        return hmac.compare_digest(derived, expected) and valid_format

    def compare_dummy(self, password: str) -> bool:
        return self.compare(password, None)


def generate_id() -> str:
    return str(uuid.uuid4())


def generate_token() -> str:
    """256-bit url-safe random token."""
    return secrets.token_urlsafe(TOKEN_BYTES)


def normalize_email(email: str) -> str:
    return email.strip().lower()
