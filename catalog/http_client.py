import logging
from typing import Any, Dict, Optional

import httpx

from catalog.config import settings

logger = logging.getLogger(__name__)

BOOKS_PATH = "/api/books"


class CatalogClient:
    """Async client for the /api/books resource.

    Every call returns the decoded response envelope as-is, whatever the
    status code; transport failures propagate as ``httpx.HTTPError`` and
    bodies that are not JSON objects raise ``ValueError``.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.api_base_url,
            transport=transport,
            timeout=timeout if timeout is not None else settings.client_timeout,
            headers={"Content-Type": "application/json"},
        )

    async def _send(self, method: str, json: Any = None) -> Dict[str, Any]:
        response = await self._client.request(method, BOOKS_PATH, json=json)
        logger.debug(f"{method} {BOOKS_PATH} -> {response.status_code}")
        body = response.json()
        if not isinstance(body, dict):
            raise ValueError(f"Unexpected response body from {method} {BOOKS_PATH}: {body!r}")
        return body

    async def list_books(self) -> Dict[str, Any]:
        return await self._send("GET")

    async def create_book(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        return await self._send("POST", json=fields)

    async def update_book(self, book_id: int, fields: Dict[str, Any]) -> Dict[str, Any]:
        return await self._send("PUT", json={"id": book_id, **fields})

    async def delete_book(self, book_id: int) -> Dict[str, Any]:
        return await self._send("DELETE", json={"id": book_id})

    async def close(self):
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
