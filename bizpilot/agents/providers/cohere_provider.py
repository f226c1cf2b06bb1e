"""
Cohere chat provider.

Cohere takes a preamble, a chat history and the current message instead of a
flat message list, so the chat messages are reshaped before the call.
"""
from typing import Any, Dict, List, Optional
import logging

import cohere

from bizpilot.agents.providers.base import (
    DEFAULT_TEMPERATURE,
    ChatMessages,
    Provider,
    ProviderOutcome,
)

logger = logging.getLogger(__name__)

COHERE_ROLES = {"user": "USER", "assistant": "CHATBOT", "system": "SYSTEM"}


def to_cohere_chat(messages: ChatMessages) -> Dict[str, Any]:
    """Split chat messages into preamble, chat_history and message."""
    preamble_parts: List[str] = []
    history: List[Dict[str, str]] = []
    for msg in messages:
        if msg["role"] == "system" and not history:
            preamble_parts.append(msg["content"])
        else:
            history.append({"role": COHERE_ROLES.get(msg["role"], "SYSTEM"), "message": msg["content"]})

    # Context folded after the latest user message stays in chat_history
    message = ""
    for index in range(len(history) - 1, -1, -1):
        if history[index]["role"] == "USER":
            message = history.pop(index)["message"]
            break
    return {
        "preamble": "\n\n".join(preamble_parts),
        "chat_history": history,
        "message": message,
    }


class CohereProvider(Provider):
    name = "cohere"

    def __init__(self, api_key: Optional[str], model: str = "command-r-plus-08-2024", client: Optional[Any] = None):
        self.api_key = api_key
        self.model = model
        self._client = client

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    @property
    def client(self):
        if self._client is None:
            self._client = cohere.AsyncClient(api_key=self.api_key)
        return self._client

    async def _complete(self, messages: ChatMessages, user_id: Optional[str]) -> ProviderOutcome:
        request = to_cohere_chat(messages)
        if not request["message"]:
            return ProviderOutcome.failure("no user message")

        logger.info(f"Trying Cohere model: {self.model}")
        response = await self.client.chat(
            model=self.model,
            message=request["message"],
            preamble=request["preamble"],
            chat_history=request["chat_history"],
            temperature=DEFAULT_TEMPERATURE,
        )
        return ProviderOutcome(text=response.text or "")
