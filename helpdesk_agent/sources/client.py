"""Async HTTP client for the Google Custom Search API with retry."""

import asyncio
import logging
from typing import Any

import httpx

from ..settings import (
    GOOGLE_SEARCH_BASE_URL,
    MAX_RETRIES,
    RETRY_BACKOFF_FACTOR,
)

logger = logging.getLogger(__name__)


class GoogleSearchClient:
    """Async client for the Custom Search JSON API."""

    def __init__(
        self,
        api_key: str,
        cx: str,
        base_url: str = GOOGLE_SEARCH_BASE_URL,
        timeout: float = 15.0,
        max_retries: int = MAX_RETRIES,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.cx = cx
        self.base_url = base_url
        self.timeout = timeout
        self.max_retries = max_retries
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "GoogleSearchClient":
        self._client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError(
                "Client not initialized. Use 'async with' context manager."
            )
        return self._client

    async def _request_with_retry(self, params: dict[str, Any]) -> httpx.Response:
        """GET with exponential backoff on 429/5xx and connection errors."""
        last_exception: Exception | None = None

        for attempt in range(self.max_retries):
            logger.debug(f"Request attempt {attempt + 1}/{self.max_retries}: GET {self.base_url}")

            try:
                response = await self.client.get(self.base_url, params=params)

                if response.status_code in (429, 500, 502, 503, 504):
                    backoff = RETRY_BACKOFF_FACTOR ** attempt
                    logger.warning(f"Google search returned {response.status_code}, backoff {backoff}s")
                    last_exception = httpx.HTTPStatusError(
                        f"Request failed with status {response.status_code}",
                        request=response.request,
                        response=response,
                    )
                    await asyncio.sleep(backoff)
                    continue

                response.raise_for_status()
                return response

            except (httpx.ConnectError, httpx.ReadTimeout) as e:
                last_exception = e
                backoff = RETRY_BACKOFF_FACTOR ** attempt
                logger.warning(f"Connection error: {e}, backoff {backoff}s")
                await asyncio.sleep(backoff)
                continue

        logger.error(f"Request failed after {self.max_retries} retries")
        if last_exception:
            raise last_exception
        raise RuntimeError("Request failed after all retries")

    async def search(self, query: str, num: int = 5) -> dict[str, Any]:
        """Run one Custom Search query."""
        params = {
            "key": self.api_key,
            "cx": self.cx,
            "q": query,
            "num": num,
        }

        logger.info(f"Google search: query='{query}', num={num}")
        response = await self._request_with_retry(params)
        return response.json()
