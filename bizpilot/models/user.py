"""User model for SQLModel."""
from sqlmodel import SQLModel, Field
from datetime import datetime
import uuid

from bizpilot.utils.time import utc_now


class UserRecord(SQLModel, table=True):
    """User account for authentication and conversation ownership."""
    __tablename__ = "users"

    id: str = Field(
        default_factory=lambda: uuid.uuid4().hex,
        primary_key=True,
        index=True
    )
    name: str = Field(max_length=255)
    email: str = Field(unique=True, index=True, max_length=255)
    password_hash: str = Field(max_length=255)
    created_at: datetime = Field(default_factory=utc_now)
