"""Test doubles for providers and upstream HTTP services."""

from typing import List, Optional

import httpx

from bizpilot.agents.providers.base import Provider, ProviderOutcome


class StubProvider(Provider):
    """Provider returning canned text, failures or streams, recording every call."""

    def __init__(
        self,
        name: str,
        text: str = "",
        error: Optional[str] = None,
        raises: Optional[Exception] = None,
        chunks: Optional[List[str]] = None,
        stream_error_after: Optional[int] = None,
        available: bool = True,
        citations: Optional[List[str]] = None
    ):
        self.name = name
        self.text = text
        self.error = error
        self.raises = raises
        self.chunks = chunks
        self.stream_error_after = stream_error_after
        self._available = available
        self.citations = citations or []
        self.supports_streaming = chunks is not None
        self.calls = []
        self.stream_calls = []

    @property
    def available(self) -> bool:
        return self._available

    async def _complete(self, messages, user_id):
        self.calls.append(messages)
        if self.raises is not None:
            raise self.raises
        if self.error is not None:
            return ProviderOutcome.failure(self.error)
        return ProviderOutcome(text=self.text, citations=list(self.citations))

    async def stream(self, messages):
        self.stream_calls.append(messages)
        for index, chunk in enumerate(self.chunks or []):
            if self.stream_error_after is not None and index >= self.stream_error_after:
                raise ConnectionError("stream dropped")
            yield chunk
        if self.stream_error_after is not None and self.stream_error_after >= len(self.chunks or []):
            raise ConnectionError("stream dropped")


def tavily_results(count: int = 2) -> dict:
    return {
        "results": [
            {
                "title": f"Result {i}",
                "url": f"https://example.com/{i}",
                "content": f"Snippet number {i} " + "x" * 400,
            }
            for i in range(1, count + 1)
        ]
    }


def mock_http_client(handler) -> httpx.AsyncClient:
    """AsyncClient whose requests are answered by handler(request)."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def failing_http_client() -> httpx.AsyncClient:
    def handler(request):
        raise AssertionError(f"unexpected network call to {request.url}")
    return mock_http_client(handler)


def signup(client, name="Dana Owner", email="dana@example.com", password="secret123") -> dict:
    """Create an account through the API and return its auth headers."""
    response = client.post("/api/auth/signup", json={"name": name, "email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


class AsyncIterator:
    """Async iterator wrapper for mocking ``async for`` loops."""

    def __init__(self, items):
        self._items = list(items)
        self._idx = 0
        self.closed = False

    def __aiter__(self):
        return self

    async def __anext__(self):
        if self._idx >= len(self._items):
            raise StopAsyncIteration
        item = self._items[self._idx]
        self._idx += 1
        return item

    async def close(self):
        self.closed = True
