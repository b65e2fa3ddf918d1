"""
auth - Sign-in state providers.
"""

from jobtrack_sync.auth.base import AuthProvider
from jobtrack_sync.auth.http_auth import HTTPAuthProvider
from jobtrack_sync.auth.memory import InMemoryAuthProvider

__all__ = [
    "AuthProvider",
    "HTTPAuthProvider",
    "InMemoryAuthProvider",
]
