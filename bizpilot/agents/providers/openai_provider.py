"""Direct OpenAI chat completions, buffered and streamed."""
from typing import AsyncIterator, Optional
import logging

from openai import AsyncOpenAI

from bizpilot.agents.providers.base import (
    DEFAULT_TEMPERATURE,
    ChatMessages,
    Provider,
    ProviderOutcome,
)

logger = logging.getLogger(__name__)


class OpenAIProvider(Provider):
    name = "openai"
    supports_streaming = True

    def __init__(self, api_key: Optional[str], model: str = "gpt-4o-mini", client: Optional[AsyncOpenAI] = None):
        self.api_key = api_key
        self.model = model
        self._client = client

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self.api_key)
        return self._client

    async def _complete(self, messages: ChatMessages, user_id: Optional[str]) -> ProviderOutcome:
        logger.info(f"Using OpenAI model: {self.model}")
        completion = await self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=DEFAULT_TEMPERATURE,
        )
        if not completion.choices:
            return ProviderOutcome.failure("no choices")
        return ProviderOutcome(text=completion.choices[0].message.content or "")

    async def stream(self, messages: ChatMessages) -> AsyncIterator[str]:
        logger.info(f"Streaming OpenAI model: {self.model}")
        stream = await self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=DEFAULT_TEMPERATURE,
            stream=True,
        )
        try:
            async for part in stream:
                if not part.choices:
                    continue
                delta = part.choices[0].delta.content
                if delta:
                    yield delta
        finally:
            await stream.close()
