"""Task schemas."""
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import List, Optional


class TaskCreate(BaseModel):
    """Schema for creating a task."""
    title: str = Field(..., min_length=2, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)


class TaskResponse(BaseModel):
    """Schema for task API responses."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    title: str
    description: Optional[str]
    status: str
    external_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class TaskEnvelope(BaseModel):
    task: TaskResponse


class TaskListResponse(BaseModel):
    tasks: List[TaskResponse]
