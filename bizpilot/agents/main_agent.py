"""
Main Orchestrator Agent

Coordinates the conversation store, the tool router and the provider chain
for one chat turn:

    resolve conversation -> append user entry -> route tools
        -> generate reply -> append assistant entry -> result

The buffered and streaming entry points share every step except generation,
so both make the same tool decisions and leave the same persisted state.
"""

from contextlib import aclosing
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple
import logging

from bizpilot.agents.provider_chain import ChainResult, ProviderChain
from bizpilot.agents.skills.citation_extraction import merge_citations
from bizpilot.agents.subagents.tool_router import ToolRouter
from bizpilot.errors import CopilotError, InputValidationError
from bizpilot.schemas.chat import Conversation, ConversationEntry, MessageRole, ToolObservation
from bizpilot.services.conversation_store import ConversationStore

logger = logging.getLogger(__name__)

TITLE_SEED_CHARS = 60
UPLOAD_TOOL_NAME = "file_upload"
DEFAULT_ANALYSIS_PROMPT = "Summarize the attached document with key points and action items."


@dataclass
class TurnResult:
    conversation_id: str
    messages: List[ConversationEntry]
    tool_results: List[ToolObservation] = field(default_factory=list)
    citations: List[str] = field(default_factory=list)


class ConversationOrchestrator:
    """
    Main orchestrator agent for copilot conversations

    Holds the working copy of one conversation per request and is the only
    writer back to the store for that request.
    """

    def __init__(
        self,
        store: ConversationStore,
        tool_router: ToolRouter,
        provider_chain: ProviderChain,
        max_citations: int = 5
    ):
        self.store = store
        self.tool_router = tool_router
        self.provider_chain = provider_chain
        self.max_citations = max_citations
        logger.info("ConversationOrchestrator initialized")

    async def _prepare(
        self,
        owner_id: str,
        conversation_id: Optional[str],
        message: str
    ) -> Tuple[Conversation, List[ConversationEntry], List[ToolObservation]]:
        """Resolve, append the user entry and route tools; returns provider context."""
        if not message or not message.strip():
            raise InputValidationError("Message cannot be empty", {"field": "message"})

        conversation = await self.store.load_or_create(owner_id, conversation_id, message[:TITLE_SEED_CHARS])
        await self.store.append(conversation, ConversationEntry(role=MessageRole.USER, content=message))

        context = list(conversation.messages)
        observations: List[ToolObservation] = []
        observation = await self.tool_router.run(context, owner_id)
        if observation is not None:
            observations.append(observation)
            context.append(self.tool_router.fold(observation))
        return conversation, context, observations

    def _citations(self, result: ChainResult, observations: List[ToolObservation]) -> List[str]:
        if result.citations:
            return result.citations[:self.max_citations]
        return merge_citations([o.content for o in observations] + [result.text], self.max_citations)

    async def _complete(
        self,
        conversation: Conversation,
        result: ChainResult,
        observations: List[ToolObservation]
    ) -> TurnResult:
        await self.store.append(conversation, ConversationEntry(role=MessageRole.ASSISTANT, content=result.text))
        return TurnResult(
            conversation_id=conversation.id,
            messages=list(conversation.messages),
            tool_results=observations + result.observations,
            citations=self._citations(result, observations)
        )

    async def handle_turn(self, owner_id: str, conversation_id: Optional[str], message: str) -> TurnResult:
        """
        Process one buffered chat turn.

        Args:
            owner_id: Authenticated user id
            conversation_id: Existing conversation, or None to start one
            message: User's message text

        Returns:
            TurnResult with the full message list after the turn

        Raises:
            InputValidationError: Empty message
            PersistenceError: Durable store failure
        """
        logger.info(f"Processing message for user {owner_id}: {message[:50]}...")
        conversation, context, observations = await self._prepare(owner_id, conversation_id, message)
        result = await self.provider_chain.generate(context, user_id=owner_id, observations=observations)
        return await self._complete(conversation, result, observations)

    async def handle_turn_stream(
        self,
        owner_id: str,
        conversation_id: Optional[str],
        message: str
    ) -> AsyncIterator[Dict[str, Any]]:
        """
        Process one chat turn as a sequence of events.

        Yields delta events while the reply is generated, then exactly one
        terminal event: done (after the reply is persisted) or error. If the
        consumer goes away mid-stream, the reply is not persisted.
        """
        logger.info(f"Streaming message for user {owner_id}: {message[:50]}...")
        try:
            conversation, context, observations = await self._prepare(owner_id, conversation_id, message)
            stream = self.provider_chain.open_stream(context, user_id=owner_id, observations=observations)
            async with aclosing(stream):
                async for chunk in stream:
                    yield {"type": "delta", "chunk": chunk}
            await self._complete(conversation, stream.result, observations)
        except CopilotError as e:
            logger.warning(f"Stream turn failed with {e.code}: {e.message}")
            yield {"type": "error", "error": e.message}
            return
        except Exception:
            logger.exception("Unexpected error in stream turn")
            yield {"type": "error", "error": "Internal server error"}
            return

        yield {"type": "done", "conversationId": conversation.id}

    async def attach_document(
        self,
        owner_id: str,
        conversation_id: Optional[str],
        filename: str,
        text: str,
        analyze: bool = True,
        prompt: Optional[str] = None
    ) -> Tuple[str, Optional[TurnResult]]:
        """
        Persist extracted document text as a tool entry, optionally analyze it.

        Returns:
            (conversation id, TurnResult of the analysis turn or None)
        """
        conversation = await self.store.load_or_create(owner_id, conversation_id, filename)
        await self.store.append(conversation, ConversationEntry(
            role=MessageRole.TOOL,
            tool_name=UPLOAD_TOOL_NAME,
            content=f"Document: {filename}\n\n{text}"
        ))
        logger.info(f"Attached {filename} ({len(text)} chars) to conversation {conversation.id}")

        if not analyze:
            return conversation.id, None

        prompt = (prompt or "").strip() or DEFAULT_ANALYSIS_PROMPT
        return conversation.id, await self.handle_turn(owner_id, conversation.id, prompt)
