"""
Conversation schemas.

ConversationEntry and Conversation are the storage-independent shapes every
ConversationStore backend produces. The *Request / *Response models are the
HTTP wire format (camelCase field names).
"""
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from bizpilot.utils.time import utc_now


class MessageRole(str, Enum):
    """Message sender role"""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ConversationEntry(CamelModel):
    """One message in a conversation; append-only."""
    role: MessageRole
    content: str
    created_at: datetime = Field(default_factory=utc_now)
    tool_name: Optional[str] = None


class Conversation(CamelModel):
    """An owned, ordered sequence of entries."""
    id: str
    owner_id: str
    title: str
    messages: List[ConversationEntry] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class ConversationSummary(CamelModel):
    id: str
    title: str
    updated_at: datetime


class ToolObservation(CamelModel):
    """Output of an external tool, folded into the provider context."""
    tool_name: str
    content: str


# HTTP schemas

class ChatRequest(CamelModel):
    """Chat request schema"""
    conversation_id: Optional[str] = None
    message: str = Field(..., min_length=1, max_length=20000)


class ChatResponse(CamelModel):
    """Chat response schema"""
    conversation_id: str
    messages: List[ConversationEntry]
    tool_results: List[ToolObservation] = Field(default_factory=list)
    citations: List[str] = Field(default_factory=list)


class ConversationListResponse(BaseModel):
    chats: List[ConversationSummary]


class ConversationDetailResponse(BaseModel):
    chat: Conversation


class RenameRequest(BaseModel):
    title: str = Field(..., max_length=255)


class OkResponse(BaseModel):
    ok: bool = True


class UploadResponse(CamelModel):
    """Response for an upload that was stored without analysis"""
    ok: bool = True
    conversation_id: str
    filename: str
    bytes: int
    chars: int
