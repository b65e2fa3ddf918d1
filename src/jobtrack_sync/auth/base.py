"""
base.py - Authentication provider contract.

A provider owns the signed-in user id and publishes every change
to it. Sync is gated on a non-null user id.
"""

from abc import ABC, abstractmethod
from typing import AsyncIterator, Optional

from jobtrack_sync.observable import ObservableValue
from jobtrack_sync.result import Result


class AuthProvider(ABC):
    """
    Abstract base class for authentication backends.

    Implementations must provide:
    - sign_in / sign_up returning Ok(user_id) or Err(AuthError)
    - sign_out returning Ok(None) or Err(AuthError)

    State changes go through _set_user so observers see them.
    """

    def __init__(self) -> None:
        self._user: ObservableValue[Optional[str]] = ObservableValue(None)

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name for logging."""
        pass

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> Result[str]:
        pass

    @abstractmethod
    async def sign_up(self, email: str, password: str) -> Result[str]:
        pass

    @abstractmethod
    async def sign_out(self) -> Result[None]:
        pass

    def current_user_id(self) -> Optional[str]:
        return self._user.value

    def observe_state(self) -> AsyncIterator[Optional[str]]:
        """Current user id first, then each change (None when signed out)."""
        return self._user.stream()

    def _set_user(self, user_id: Optional[str]) -> None:
        self._user.set(user_id)
