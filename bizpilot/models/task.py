"""Task model for SQLModel."""
from sqlmodel import SQLModel, Field
from datetime import datetime
from typing import Optional

from bizpilot.utils.time import utc_now


class TaskRecord(SQLModel, table=True):
    """Lightweight business task owned by a user."""
    __tablename__ = "tasks"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True, max_length=64)
    title: str = Field(max_length=200, min_length=1)
    description: Optional[str] = Field(default=None, max_length=2000)
    status: str = Field(default="open", max_length=20)  # open, in_progress, done
    external_id: Optional[str] = Field(default=None, max_length=255)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
