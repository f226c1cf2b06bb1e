"""
Provider Chain

Ordered chain of chat-completion providers with a fixed selection policy:

1. Offline mode, or no provider credentials at all: the local fallback
   responder answers and no network call is made.
2. Otherwise each available provider is tried in order; one that fails or
   returns empty text is skipped. If none produces text, the fallback
   responder answers.

An explicit preference (LLM_PROVIDER) restricts the attempts to that provider
(plus the agentic provider when the preference is "openai").

Streaming uses the first candidate that can stream. If there is none, or it
fails before its first chunk, the buffered result is emitted in fixed-size
chunks. A failure after chunks were delivered raises StreamError.
"""

from contextlib import aclosing
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional, Sequence, Union
import asyncio
import inspect
import logging

from bizpilot.agents.providers.base import ChatMessages, Provider
from bizpilot.agents.skills.fallback_responder import fallback_reply
from bizpilot.errors import StreamError
from bizpilot.schemas.chat import ConversationEntry, MessageRole, ToolObservation

logger = logging.getLogger(__name__)

SYSTEM_PREAMBLE = (
    "You are BizPilot, an AI business copilot for SMB owners. You can search the web "
    "when needed using the tavily_search tool. Always cite sources succinctly."
)
FALLBACK_CHUNK_SIZE = 40
FALLBACK_PROVIDER = "fallback"

ChunkCallback = Callable[[str], Union[None, Awaitable[None]]]


@dataclass
class ChainResult:
    text: str
    provider: str
    citations: List[str] = field(default_factory=list)
    observations: List[ToolObservation] = field(default_factory=list)


def to_chat_messages(history: Sequence[ConversationEntry]) -> ChatMessages:
    """Preamble plus history, with tool entries rewritten as system context."""
    messages = [{"role": "system", "content": SYSTEM_PREAMBLE}]
    for entry in history:
        if entry.role == MessageRole.TOOL:
            messages.append({
                "role": "system",
                "content": f"Tool context: {entry.tool_name or 'tool'}\n{entry.content}"
            })
        else:
            messages.append({"role": entry.role.value, "content": entry.content})
    return messages


def chunk_text(text: str, size: int = FALLBACK_CHUNK_SIZE) -> List[str]:
    return [text[i:i + size] for i in range(0, len(text), size)]


class ProviderChain:
    """Chain-of-responsibility over providers, ending in the fallback responder"""

    def __init__(self, providers: Sequence[Provider], preference: str = "", offline: bool = False):
        self.providers = list(providers)
        self.preference = (preference or "").lower()
        self.offline = offline

    def candidates(self) -> List[Provider]:
        if self.offline:
            return []
        available = [p for p in self.providers if p.available]
        if self.preference:
            allowed = {self.preference}
            if self.preference == "openai":
                allowed.add("openai_agent")
            available = [p for p in available if p.name in allowed]
        return available

    def streaming_provider(self) -> Optional[Provider]:
        return next((p for p in self.candidates() if p.supports_streaming), None)

    async def generate(
        self,
        history: Sequence[ConversationEntry],
        user_id: Optional[str] = None,
        observations: Sequence[ToolObservation] = ()
    ) -> ChainResult:
        """Buffered reply for history; never raises for provider failures."""
        candidates = self.candidates()
        if not candidates:
            reason = "OFFLINE_MODE=1" if self.offline else "no usable provider credentials"
            logger.info(f"{reason}, using fallback responder")
            return ChainResult(text=fallback_reply(history, observations), provider=FALLBACK_PROVIDER)

        messages = to_chat_messages(history)
        for provider in candidates:
            outcome = await provider.generate(messages, user_id=user_id)
            if outcome.ok:
                logger.info(f"Reply generated by {provider.name}")
                return ChainResult(
                    text=outcome.text,
                    provider=provider.name,
                    citations=outcome.citations,
                    observations=outcome.observations
                )
            logger.warning(f"Provider {provider.name} skipped: {outcome.error}")

        logger.warning("All providers failed, using fallback responder")
        return ChainResult(text=fallback_reply(history, observations), provider=FALLBACK_PROVIDER)

    def open_stream(
        self,
        history: Sequence[ConversationEntry],
        user_id: Optional[str] = None,
        observations: Sequence[ToolObservation] = ()
    ) -> "ChainStream":
        return ChainStream(self, history, user_id, observations)

    async def generate_stream(
        self,
        history: Sequence[ConversationEntry],
        on_chunk: ChunkCallback,
        user_id: Optional[str] = None,
        observations: Sequence[ToolObservation] = ()
    ) -> ChainResult:
        """Deliver the reply to on_chunk incrementally; returns the final result."""
        stream = self.open_stream(history, user_id, observations)
        async with aclosing(stream):
            async for chunk in stream:
                delivered = on_chunk(chunk)
                if inspect.isawaitable(delivered):
                    await delivered
        return stream.result


class ChainStream:
    """
    Async iterator over reply chunks.

    After iteration completes, result holds the full text and citations.
    aclose() stops an unfinished iteration and releases the upstream stream.
    """

    def __init__(self, chain: ProviderChain, history, user_id, observations):
        self.chain = chain
        self.history = list(history)
        self.user_id = user_id
        self.observations = list(observations)
        self.result: Optional[ChainResult] = None
        self._chunks = None

    def __aiter__(self):
        if self._chunks is None:
            self._chunks = self._run()
        return self._chunks

    async def aclose(self):
        if self._chunks is not None:
            await self._chunks.aclose()

    async def _run(self):
        provider = self.chain.streaming_provider()
        if provider is not None:
            parts: List[str] = []
            try:
                async with aclosing(provider.stream(to_chat_messages(self.history))) as chunks:
                    async for chunk in chunks:
                        if not chunk:
                            continue
                        parts.append(chunk)
                        yield chunk
            except asyncio.CancelledError:
                raise
            except Exception as e:
                if parts:
                    logger.error(f"Stream from {provider.name} failed after {len(parts)} chunks: {e.__class__.__name__}")
                    raise StreamError() from e
                logger.warning(f"Stream from {provider.name} failed before first chunk, using buffered reply")
            else:
                if parts:
                    self.result = ChainResult(text="".join(parts), provider=provider.name)
                    return
                logger.warning(f"Stream from {provider.name} produced no text, using buffered reply")

        result = await self.chain.generate(self.history, self.user_id, self.observations)
        for chunk in chunk_text(result.text):
            yield chunk
        self.result = result


def build_provider_chain(settings, mcp_server) -> ProviderChain:
    """Providers in preference order: agentic, OpenAI, Groq, OpenRouter, Cohere."""
    from bizpilot.agents.providers.agentic import AgenticProvider
    from bizpilot.agents.providers.cohere_provider import CohereProvider
    from bizpilot.agents.providers.compatible import groq_provider, openrouter_provider
    from bizpilot.agents.providers.openai_provider import OpenAIProvider

    providers = [
        AgenticProvider(
            settings.openai_api_key,
            settings.openai_model,
            mcp_server,
            max_citations=settings.max_citations
        ),
        OpenAIProvider(settings.openai_api_key, settings.openai_model),
        groq_provider(settings.groq_api_key, settings.groq_model),
        openrouter_provider(settings.openrouter_api_key, settings.openrouter_model, settings.client_url),
        CohereProvider(settings.cohere_api_key, settings.cohere_model),
    ]
    chain = ProviderChain(providers, preference=settings.llm_provider, offline=settings.offline_mode)
    logger.info(f"Provider chain candidates: {[p.name for p in chain.candidates()] or [FALLBACK_PROVIDER]}")
    return chain
