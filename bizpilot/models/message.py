"""
Message Model

Stores individual conversation entries (system, user, assistant or tool).
Entries are immutable once created; the autoincrement id is the append order.
"""

from datetime import datetime
from typing import Optional, TYPE_CHECKING
from sqlmodel import SQLModel, Field, Relationship, Column
from sqlalchemy import Text, String

from bizpilot.utils.time import utc_now

if TYPE_CHECKING:
    from .conversation import ConversationRecord


class MessageRecord(SQLModel, table=True):
    """Single conversation entry row."""
    __tablename__ = "messages"

    id: Optional[int] = Field(default=None, primary_key=True)
    conversation_id: str = Field(foreign_key="conversations.id", index=True)
    role: str = Field(sa_column=Column(String(16), nullable=False))
    content: str = Field(sa_column=Column(Text, nullable=False))
    tool_name: Optional[str] = Field(default=None, max_length=64)
    created_at: datetime = Field(default_factory=utc_now)

    conversation: Optional["ConversationRecord"] = Relationship(
        back_populates="messages",
        sa_relationship_kwargs={"lazy": "select"}
    )
