"""
Conversation Model

Stores conversation metadata for chat sessions between users and the copilot.
Each conversation belongs to one owner and contains an ordered list of messages.
"""

from datetime import datetime
from typing import List, TYPE_CHECKING
import uuid
from sqlmodel import SQLModel, Field, Relationship

from bizpilot.utils.time import utc_now

if TYPE_CHECKING:
    from .message import MessageRecord


class ConversationRecord(SQLModel, table=True):
    """
    Conversation metadata row.

    Ownership is enforced by always querying on (id, user_id); the owner id is
    opaque to the storage layer.
    """
    __tablename__ = "conversations"

    id: str = Field(default_factory=lambda: uuid.uuid4().hex, primary_key=True)
    user_id: str = Field(index=True, max_length=64)
    title: str = Field(max_length=255)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, index=True)

    messages: List["MessageRecord"] = Relationship(
        back_populates="conversation",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "lazy": "select"}
    )
