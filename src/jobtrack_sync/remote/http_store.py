"""
http_store.py - HTTP-based remote document store.

Talks to the REST document API served by jobtrack_sync.remote.server
(or any service exposing the same routes).
"""

import logging
from typing import Callable
from urllib.parse import quote

import httpx

from jobtrack_sync.config import DEFAULT_HTTP_TIMEOUT
from jobtrack_sync.errors import RemoteStoreError
from jobtrack_sync.remote.base import Document, RemoteStore, check_collection, document_id

logger = logging.getLogger(__name__)


class HTTPRemoteStore(RemoteStore):
    """
    HTTP REST client for the remote document store.

    Endpoints expected on server:
    - PUT    /users/{user_id}/{collection}/{doc_id}
    - DELETE /users/{user_id}/{collection}/{doc_id}
    - GET    /users/{user_id}/{collection}?since=<ms>
    """

    def __init__(
        self,
        base_url: str,
        token_provider: Callable[[], str | None] | None = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._token_provider = token_provider
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout,
            transport=transport,
        )

    @property
    def name(self) -> str:
        return "HTTP"

    async def close(self) -> None:
        await self._client.aclose()

    async def upsert(self, user_id: str, collection: str, document: Document) -> None:
        check_collection(collection)
        doc_id = document_id(collection, document)
        await self._request("PUT", self._doc_path(user_id, collection, doc_id), collection, json=document)

    async def delete(self, user_id: str, collection: str, doc_id: str) -> None:
        check_collection(collection)
        await self._request("DELETE", self._doc_path(user_id, collection, doc_id), collection)

    async def get_since(self, user_id: str, collection: str, since_ms: int) -> list[Document]:
        check_collection(collection)
        data = await self._request(
            "GET",
            f"/users/{quote(user_id, safe='')}/{collection}",
            collection,
            params={"since": since_ms},
        )
        documents = data.get("documents")
        if not isinstance(documents, list):
            raise RemoteStoreError("Malformed response: missing documents", collection=collection)
        return documents

    def _doc_path(self, user_id: str, collection: str, doc_id: str) -> str:
        return f"/users/{quote(user_id, safe='')}/{collection}/{quote(doc_id, safe='')}"

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        token = self._token_provider() if self._token_provider else None
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def _request(self, method: str, path: str, collection: str, **kwargs) -> dict:
        try:
            response = await self._client.request(method, path, headers=self._headers(), **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"{method} {path} failed: HTTP {e.response.status_code}")
            raise RemoteStoreError(
                f"Remote rejected {method}: {_detail(e.response)}",
                collection=collection,
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise RemoteStoreError(f"Remote unreachable: {e}", collection=collection) from e

        if not response.content:
            return {}
        try:
            data = response.json()
        except ValueError as e:
            raise RemoteStoreError("Malformed JSON response", collection=collection) from e
        if not isinstance(data, dict):
            raise RemoteStoreError("Malformed response: expected an object", collection=collection)
        return data


def _detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.reason_phrase
    if isinstance(body, dict) and "detail" in body:
        return str(body["detail"])
    return response.reason_phrase
