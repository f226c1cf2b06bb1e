"""Task persistence for the tasks API and the create_task tool."""
from typing import List, Optional
import logging

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from bizpilot.errors import PersistenceError
from bizpilot.models.task import TaskRecord

logger = logging.getLogger(__name__)


class TaskService:
    """Business logic for user-owned tasks"""

    def __init__(self, engine: Engine):
        self.engine = engine

    def create_task(self, user_id: str, title: str, description: Optional[str] = None) -> TaskRecord:
        task = TaskRecord(user_id=user_id, title=title, description=description)
        try:
            with Session(self.engine) as session:
                session.add(task)
                session.commit()
                session.refresh(task)
                logger.info(f"Created task {task.id} for user {user_id}")
                return task
        except SQLAlchemyError as e:
            logger.error(f"Task storage failure: {e.__class__.__name__}")
            raise PersistenceError("Task storage is unavailable") from e

    def list_tasks(self, user_id: str) -> List[TaskRecord]:
        """Tasks for user_id, newest first"""
        try:
            with Session(self.engine) as session:
                statement = select(TaskRecord).where(
                    TaskRecord.user_id == user_id
                ).order_by(TaskRecord.created_at.desc(), TaskRecord.id.desc())
                return list(session.exec(statement).all())
        except SQLAlchemyError as e:
            logger.error(f"Task storage failure: {e.__class__.__name__}")
            raise PersistenceError("Task storage is unavailable") from e
