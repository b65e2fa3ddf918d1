"""
memory.py - In-process authentication provider.

Accounts live in a dictionary; intended for tests, demos and
single-user local setups paired with InMemoryRemoteStore.
"""

import logging
from typing import Optional

from jobtrack_sync.auth.base import AuthProvider
from jobtrack_sync.errors import AuthError
from jobtrack_sync.result import Err, Ok, Result
from jobtrack_sync.security import hash_password, verify_password
from jobtrack_sync.utils.uuid7 import uuid7_str

logger = logging.getLogger(__name__)


class InMemoryAuthProvider(AuthProvider):
    """Email/password accounts held in memory."""

    def __init__(self, signed_in_user: Optional[str] = None) -> None:
        super().__init__()
        self._accounts: dict[str, tuple[str, str]] = {}
        if signed_in_user is not None:
            self._set_user(signed_in_user)

    @property
    def name(self) -> str:
        return "memory"

    async def sign_up(self, email: str, password: str) -> Result[str]:
        if not email or not password:
            return Err(AuthError("Email and password are required", email=email))
        key = email.lower()
        if key in self._accounts:
            return Err(AuthError("Email already registered", email=email))
        user_id = uuid7_str()
        self._accounts[key] = (user_id, hash_password(password))
        logger.info(f"Registered user {user_id}")
        self._set_user(user_id)
        return Ok(user_id)

    async def sign_in(self, email: str, password: str) -> Result[str]:
        account = self._accounts.get(email.lower())
        if account is None or not verify_password(password, account[1]):
            return Err(AuthError("Invalid email or password", email=email))
        self._set_user(account[0])
        return Ok(account[0])

    async def sign_out(self) -> Result[None]:
        self._set_user(None)
        return Ok(None)
