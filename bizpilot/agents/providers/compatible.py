"""
OpenAI-compatible chat APIs reached over plain HTTP (Groq, OpenRouter).
"""
from typing import Dict, Optional
import logging

import httpx

from bizpilot.agents.providers.base import (
    DEFAULT_TEMPERATURE,
    ChatMessages,
    Provider,
    ProviderOutcome,
)

logger = logging.getLogger(__name__)

GROQ_BASE_URL = "https://api.groq.com/openai/v1"
OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"

REQUEST_TIMEOUT = 60.0


class CompatibleChatProvider(Provider):
    """Chat completions against any endpoint speaking the OpenAI wire format"""

    def __init__(
        self,
        name: str,
        api_key: Optional[str],
        model: str,
        base_url: str,
        extra_headers: Optional[Dict[str, str]] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self.name = name
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.extra_headers = extra_headers or {}
        self.http_client = http_client

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    async def _post(self, payload: dict) -> httpx.Response:
        url = f"{self.base_url}/chat/completions"
        headers = {"Authorization": f"Bearer {self.api_key}", **self.extra_headers}
        if self.http_client is not None:
            return await self.http_client.post(url, json=payload, headers=headers)
        async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT) as client:
            return await client.post(url, json=payload, headers=headers)

    async def _complete(self, messages: ChatMessages, user_id: Optional[str]) -> ProviderOutcome:
        logger.info(f"Trying {self.name} model: {self.model}")
        response = await self._post({
            "model": self.model,
            "messages": messages,
            "temperature": DEFAULT_TEMPERATURE,
        })
        if response.status_code >= 400:
            logger.error(f"{self.name} failed with status {response.status_code}")
            return ProviderOutcome.failure(f"HTTP {response.status_code}")

        body = response.json()
        choices = body.get("choices") if isinstance(body, dict) else None
        if not choices:
            return ProviderOutcome.failure("no choices")
        message = choices[0].get("message") or {}
        return ProviderOutcome(text=message.get("content") or "")


def groq_provider(api_key: Optional[str], model: str, http_client: Optional[httpx.AsyncClient] = None) -> CompatibleChatProvider:
    return CompatibleChatProvider("groq", api_key, model, GROQ_BASE_URL, http_client=http_client)


def openrouter_provider(api_key: Optional[str], model: str, referer: str, http_client: Optional[httpx.AsyncClient] = None) -> CompatibleChatProvider:
    return CompatibleChatProvider(
        "openrouter",
        api_key,
        model,
        OPENROUTER_BASE_URL,
        extra_headers={"HTTP-Referer": referer, "X-Title": "BizPilot"},
        http_client=http_client,
    )
