"""Initialize database tables."""
import logging

from sqlalchemy.engine import Engine
from sqlmodel import SQLModel

from bizpilot.models.user import UserRecord  # noqa: F401
from bizpilot.models.task import TaskRecord  # noqa: F401
from bizpilot.models.conversation import ConversationRecord  # noqa: F401
from bizpilot.models.message import MessageRecord  # noqa: F401

logger = logging.getLogger(__name__)


def init_db(engine: Engine) -> None:
    """Create all tables in the database."""
    logger.info("[DB INIT] Creating all tables...")
    SQLModel.metadata.create_all(engine)
    logger.info("[DB INIT] Tables created successfully.")
