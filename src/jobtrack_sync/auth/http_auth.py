"""
http_auth.py - Authentication against the document server.

Signs in over the /auth routes and keeps the issued bearer token
for HTTPRemoteStore (pass `provider.token` as its token_provider).
"""

import logging
from typing import Optional

import httpx

from jobtrack_sync.auth.base import AuthProvider
from jobtrack_sync.config import DEFAULT_HTTP_TIMEOUT
from jobtrack_sync.errors import AuthError
from jobtrack_sync.result import Err, Ok, Result

logger = logging.getLogger(__name__)


class HTTPAuthProvider(AuthProvider):
    """
    HTTP client for the server's auth endpoints.

    Endpoints expected on server:
    - POST /auth/signup
    - POST /auth/signin
    Both take {"email", "password"} and return {"user_id", "token"}.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__()
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
        )
        self._token: Optional[str] = None

    @property
    def name(self) -> str:
        return "HTTP"

    def token(self) -> Optional[str]:
        """Bearer token of the current session, if any."""
        return self._token

    async def sign_in(self, email: str, password: str) -> Result[str]:
        return await self._authenticate("/auth/signin", email, password)

    async def sign_up(self, email: str, password: str) -> Result[str]:
        return await self._authenticate("/auth/signup", email, password)

    async def sign_out(self) -> Result[None]:
        self._token = None
        self._set_user(None)
        return Ok(None)

    async def close(self) -> None:
        await self._client.aclose()

    async def _authenticate(self, path: str, email: str, password: str) -> Result[str]:
        try:
            response = await self._client.post(path, json={"email": email, "password": password})
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"POST {path} failed: HTTP {e.response.status_code}")
            return Err(AuthError(_detail(e.response), email=email))
        except httpx.HTTPError as e:
            logger.error(f"POST {path} failed: {e}")
            return Err(AuthError(f"Auth server unreachable: {e}", email=email))
        except ValueError:
            return Err(AuthError("Malformed auth response", email=email))

        user_id = data.get("user_id") if isinstance(data, dict) else None
        if not user_id:
            return Err(AuthError("Auth response has no user id", email=email))
        self._token = data.get("token")
        self._set_user(user_id)
        return Ok(user_id)


def _detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.reason_phrase
    if isinstance(body, dict) and "detail" in body:
        return str(body["detail"])
    return response.reason_phrase
