from __future__ import annotations

import asyncio
from typing import Any, Dict, Iterable, List, Optional

import httpx


class MockRequest:
    def __init__(self, url: str):
        self.url = url


class MockAsyncResponse:
    def __init__(
        self,
        json_data: Any,
        *,
        headers: Optional[Dict[str, str]] = None,
        request_url: Optional[str] = None,
        status_code: int = 200,
    ) -> None:
        self._json = json_data
        self.headers = headers or {}
        self.request = MockRequest(request_url or "https://example.com/mock")
        self.status_code = status_code
        # content is used to check if response has data
        self.content = json_data is not None

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise httpx.HTTPStatusError(
                f"HTTP {self.status_code}",
                request=self.request,
                response=self,
            )

    def json(self) -> Any:
        if isinstance(self._json, Exception):
            raise self._json
        return self._json


class MockAsyncClient:
    """Stand-in for httpx.AsyncClient returning canned responses in order."""

    def __init__(self, responses: Iterable[Any], **_kwargs) -> None:
        self._responses: List[Any] = list(responses)
        self.requested: List[str] = []

    async def __aenter__(self) -> "MockAsyncClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        return False

    async def get(self, url: str, *, params: Optional[Dict[str, Any]] = None, **_kwargs) -> MockAsyncResponse:
        if not self._responses:
            raise AssertionError("No more mock responses available")
        self.requested.append(str(url))
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        response.request = MockRequest(str(url))
        return response


def run(coro):
    """Helper to run async functions in synchronous tests."""
    return asyncio.run(coro)
