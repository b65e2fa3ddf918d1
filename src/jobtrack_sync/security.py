"""
security.py - Credentials and access tokens.

Provides:
- PBKDF2-SHA256 password hashing
- Minimal HS256 JWT tokens binding a request to one user namespace
"""

import base64
import hashlib
import hmac
import json
import os
import time

PBKDF2_ITERATIONS = 120_000


def hash_password(password: str, salt: bytes | None = None) -> str:
    """Return "pbkdf2_sha256$iterations$salt$hash" for storage."""
    salt = salt or os.urandom(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt, PBKDF2_ITERATIONS)
    return f"pbkdf2_sha256${PBKDF2_ITERATIONS}${salt.hex()}${digest.hex()}"


def verify_password(password: str, stored: str) -> bool:
    try:
        algorithm, iterations, salt_hex, digest_hex = stored.split("$")
    except ValueError:
        return False
    if algorithm != "pbkdf2_sha256":
        return False
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode(), bytes.fromhex(salt_hex), int(iterations)
    )
    return hmac.compare_digest(digest.hex(), digest_hex)


_TOKEN_HEADER = b'{"alg":"HS256","typ":"JWT"}'


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode()


def _unb64url(text: str) -> bytes:
    return base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))


class TokenManager:
    """
    HS256 bearer tokens whose subject is a user id.

    A token lets its bearer read and write that user's documents
    until it expires.
    """

    def __init__(self, secret_key: bytes, issuer: str = "jobtrack-sync", ttl_seconds: int = 86400 * 30):
        self._secret = secret_key
        self._issuer = issuer
        self._ttl = ttl_seconds

    def create_token(self, user_id: str) -> str:
        now = int(time.time())
        claims = {"iss": self._issuer, "sub": user_id, "iat": now, "exp": now + self._ttl}
        signed = f"{_b64url(_TOKEN_HEADER)}.{_b64url(json.dumps(claims).encode())}"
        return f"{signed}.{self._sign(signed)}"

    def verify_token(self, token: str) -> str | None:
        """Return the user id for a valid, unexpired token."""
        signed, _, signature = token.rpartition(".")
        if signed.count(".") != 1:
            return None
        if not hmac.compare_digest(self._sign(signed).encode(), signature.encode()):
            return None
        try:
            claims = json.loads(_unb64url(signed.split(".")[1]))
        except ValueError:
            return None
        if not isinstance(claims, dict) or claims.get("iss") != self._issuer:
            return None
        if claims.get("exp", 0) < time.time():
            return None
        return claims.get("sub")

    def _sign(self, signed: str) -> str:
        return _b64url(hmac.new(self._secret, signed.encode(), hashlib.sha256).digest())
