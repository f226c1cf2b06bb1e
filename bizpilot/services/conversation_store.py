"""
Conversation Store

Storage contract for conversations plus the ephemeral in-process backend.

Both backends (this module's MemoryConversationStore and the SQL-backed
ConversationService) must be observably identical for every method: the
orchestrator never knows which one it talks to. All reads and writes are
scoped by (conversation id, owner id); a conversation owned by someone else
behaves exactly like one that does not exist.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional
import logging
import uuid

from bizpilot.errors import InputValidationError, NotFoundError
from bizpilot.schemas.chat import Conversation, ConversationEntry, ConversationSummary
from bizpilot.utils.time import utc_now

logger = logging.getLogger(__name__)


class ConversationStore(ABC):
    """Abstract repository for owned conversations"""

    @abstractmethod
    async def load_or_create(
        self,
        owner_id: str,
        conversation_id: Optional[str],
        seed_title: str
    ) -> Conversation:
        """
        Resolve conversation_id under owner_id, or create a new conversation.

        Never fails on an unknown or foreign id: a fresh conversation titled
        seed_title is created instead.
        """

    @abstractmethod
    async def append(self, conversation: Conversation, entry: ConversationEntry) -> None:
        """
        Persist entry at the end of the conversation.

        The working copy passed in is updated too (messages and updated_at),
        so callers can keep using it after the write.
        """

    @abstractmethod
    async def list_conversations(self, owner_id: str) -> List[ConversationSummary]:
        """Summaries ordered by updated_at, most recent first"""

    @abstractmethod
    async def get(self, owner_id: str, conversation_id: str) -> Conversation:
        """Raises NotFoundError when missing or not owned"""

    @abstractmethod
    async def rename(self, owner_id: str, conversation_id: str, title: str) -> None:
        """Raises NotFoundError when missing or not owned"""

    @abstractmethod
    async def delete(self, owner_id: str, conversation_id: str) -> None:
        """Raises NotFoundError when missing or not owned"""

    @staticmethod
    def require_owner(owner_id: str) -> None:
        if not owner_id or not isinstance(owner_id, str):
            raise InputValidationError("Conversation owner is required", {"field": "owner_id"})

    @staticmethod
    def clean_title(title: str) -> str:
        cleaned = (title or "").strip()
        if not cleaned:
            raise InputValidationError("Title is required", {"field": "title"})
        return cleaned

    @staticmethod
    def new_conversation_id() -> str:
        return uuid.uuid4().hex


class MemoryConversationStore(ConversationStore):
    """
    Ephemeral backend: owner id -> conversation id -> Conversation.

    Lives as long as the instance (normally the process), has no eviction and
    is meant for development and offline operation only. Records are copied on
    the way in and out so no caller holds a reference into the store.
    """

    def __init__(self):
        self._conversations: Dict[str, Dict[str, Conversation]] = {}
        logger.info("Ephemeral conversation store initialized")

    def _find(self, owner_id: str, conversation_id: Optional[str]) -> Optional[Conversation]:
        if not conversation_id:
            return None
        return self._conversations.get(owner_id, {}).get(conversation_id)

    def _get_owned(self, owner_id: str, conversation_id: str) -> Conversation:
        stored = self._find(owner_id, conversation_id)
        if stored is None:
            raise NotFoundError("Not found")
        return stored

    async def load_or_create(
        self,
        owner_id: str,
        conversation_id: Optional[str],
        seed_title: str
    ) -> Conversation:
        self.require_owner(owner_id)

        existing = self._find(owner_id, conversation_id)
        if existing is not None:
            return existing.model_copy(deep=True)

        now = utc_now()
        conversation = Conversation(
            id=self.new_conversation_id(),
            owner_id=owner_id,
            title=seed_title,
            messages=[],
            created_at=now,
            updated_at=now
        )
        self._conversations.setdefault(owner_id, {})[conversation.id] = conversation
        logger.info(f"Created conversation {conversation.id} for user {owner_id}")
        return conversation.model_copy(deep=True)

    async def append(self, conversation: Conversation, entry: ConversationEntry) -> None:
        stored = self._get_owned(conversation.owner_id, conversation.id)
        now = utc_now()
        stored.messages.append(entry.model_copy())
        stored.updated_at = now

        conversation.messages.append(entry)
        conversation.updated_at = now

    async def list_conversations(self, owner_id: str) -> List[ConversationSummary]:
        owned = self._conversations.get(owner_id, {})
        summaries = [
            ConversationSummary(id=c.id, title=c.title, updated_at=c.updated_at)
            for c in owned.values()
        ]
        return sorted(summaries, key=lambda s: s.updated_at, reverse=True)

    async def get(self, owner_id: str, conversation_id: str) -> Conversation:
        return self._get_owned(owner_id, conversation_id).model_copy(deep=True)

    async def rename(self, owner_id: str, conversation_id: str, title: str) -> None:
        title = self.clean_title(title)
        stored = self._get_owned(owner_id, conversation_id)
        stored.title = title
        stored.updated_at = utc_now()

    async def delete(self, owner_id: str, conversation_id: str) -> None:
        self._get_owned(owner_id, conversation_id)
        del self._conversations[owner_id][conversation_id]
        logger.info(f"Deleted conversation {conversation_id} for user {owner_id}")
