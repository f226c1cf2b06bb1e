"""
Conversation Service

Durable ConversationStore backed by SQLModel (SQLite or PostgreSQL).

Every query filters on the owner id, so a foreign conversation is
indistinguishable from a missing one. Driver errors are converted to
PersistenceError; they are never downgraded to the ephemeral store.
"""

from contextlib import contextmanager
from typing import Iterator, List, Optional
import logging

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from bizpilot.errors import NotFoundError, PersistenceError
from bizpilot.models.conversation import ConversationRecord
from bizpilot.models.message import MessageRecord
from bizpilot.schemas.chat import (
    Conversation,
    ConversationEntry,
    ConversationSummary,
    MessageRole,
)
from bizpilot.services.conversation_store import ConversationStore
from bizpilot.utils.time import utc_now

logger = logging.getLogger(__name__)


class ConversationService(ConversationStore):
    """Service for managing conversations and messages in the database"""

    def __init__(self, engine: Engine):
        self.engine = engine

    @contextmanager
    def _session(self) -> Iterator[Session]:
        session = Session(self.engine)
        try:
            yield session
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Conversation storage failure: {e.__class__.__name__}", exc_info=True)
            raise PersistenceError() from e
        finally:
            session.close()

    @staticmethod
    def _owned(session: Session, owner_id: str, conversation_id: Optional[str]) -> Optional[ConversationRecord]:
        """Get conversation ensuring ownership"""
        if not conversation_id:
            return None
        statement = select(ConversationRecord).where(
            ConversationRecord.id == conversation_id,
            ConversationRecord.user_id == owner_id
        )
        return session.exec(statement).first()

    @staticmethod
    def _to_conversation(record: ConversationRecord, messages: List[MessageRecord]) -> Conversation:
        return Conversation(
            id=record.id,
            owner_id=record.user_id,
            title=record.title,
            messages=[
                ConversationEntry(
                    role=MessageRole(msg.role),
                    content=msg.content,
                    created_at=msg.created_at,
                    tool_name=msg.tool_name
                )
                for msg in messages
            ],
            created_at=record.created_at,
            updated_at=record.updated_at
        )

    @staticmethod
    def _messages(session: Session, conversation_id: str) -> List[MessageRecord]:
        statement = select(MessageRecord).where(
            MessageRecord.conversation_id == conversation_id
        ).order_by(MessageRecord.id)
        return list(session.exec(statement).all())

    async def load_or_create(
        self,
        owner_id: str,
        conversation_id: Optional[str],
        seed_title: str
    ) -> Conversation:
        self.require_owner(owner_id)

        with self._session() as session:
            record = self._owned(session, owner_id, conversation_id)
            if record is not None:
                return self._to_conversation(record, self._messages(session, record.id))

            now = utc_now()
            record = ConversationRecord(
                id=self.new_conversation_id(),
                user_id=owner_id,
                title=seed_title,
                created_at=now,
                updated_at=now
            )
            session.add(record)
            session.commit()
            session.refresh(record)
            logger.info(f"Created conversation {record.id} for user {owner_id}")
            return self._to_conversation(record, [])

    async def append(self, conversation: Conversation, entry: ConversationEntry) -> None:
        with self._session() as session:
            record = self._owned(session, conversation.owner_id, conversation.id)
            if record is None:
                raise NotFoundError("Not found")

            now = utc_now()
            session.add(MessageRecord(
                conversation_id=record.id,
                role=entry.role.value,
                content=entry.content,
                tool_name=entry.tool_name,
                created_at=entry.created_at
            ))
            record.updated_at = now
            session.add(record)
            session.commit()

        conversation.messages.append(entry)
        conversation.updated_at = now

    async def list_conversations(self, owner_id: str) -> List[ConversationSummary]:
        with self._session() as session:
            statement = select(ConversationRecord).where(
                ConversationRecord.user_id == owner_id
            ).order_by(ConversationRecord.updated_at.desc())
            return [
                ConversationSummary(id=record.id, title=record.title, updated_at=record.updated_at)
                for record in session.exec(statement).all()
            ]

    async def get(self, owner_id: str, conversation_id: str) -> Conversation:
        with self._session() as session:
            record = self._owned(session, owner_id, conversation_id)
            if record is None:
                raise NotFoundError("Not found")
            return self._to_conversation(record, self._messages(session, record.id))

    async def rename(self, owner_id: str, conversation_id: str, title: str) -> None:
        title = self.clean_title(title)
        with self._session() as session:
            record = self._owned(session, owner_id, conversation_id)
            if record is None:
                raise NotFoundError("Not found")
            record.title = title
            record.updated_at = utc_now()
            session.add(record)
            session.commit()

    async def delete(self, owner_id: str, conversation_id: str) -> None:
        with self._session() as session:
            record = self._owned(session, owner_id, conversation_id)
            if record is None:
                raise NotFoundError("Not found")
            for message in self._messages(session, record.id):
                session.delete(message)
            session.delete(record)
            session.commit()
            logger.info(f"Deleted conversation {conversation_id} for user {owner_id}")
