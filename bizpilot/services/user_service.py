"""
User Service

Account storage for authentication. The same startup decision that picks the
conversation backend picks the account backend, so signup and login keep
working when no database is reachable.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, Optional
import logging
import uuid

import bcrypt
from pydantic import BaseModel
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from bizpilot.errors import ConflictError, PersistenceError
from bizpilot.models.user import UserRecord
from bizpilot.utils.time import utc_now

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=10)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


class UserAccount(BaseModel):
    id: str
    name: str
    email: str
    password_hash: str
    created_at: datetime


class UserStore(ABC):
    """Account repository keyed by id, unique on lower-cased email"""

    @abstractmethod
    def create_user(self, name: str, email: str, password: str) -> UserAccount:
        """Raises ConflictError when the email is already registered"""

    @abstractmethod
    def get_by_email(self, email: str) -> Optional[UserAccount]:
        pass

    @abstractmethod
    def get_by_id(self, user_id: str) -> Optional[UserAccount]:
        pass

    def authenticate(self, email: str, password: str) -> Optional[UserAccount]:
        """Return the account when the password matches, else None"""
        account = self.get_by_email(email)
        if account is None or not verify_password(password, account.password_hash):
            return None
        return account


class MemoryUserStore(UserStore):
    def __init__(self):
        self._users: Dict[str, UserAccount] = {}

    def create_user(self, name: str, email: str, password: str) -> UserAccount:
        email = email.lower()
        if self.get_by_email(email) is not None:
            raise ConflictError("Email already in use")
        account = UserAccount(
            id=uuid.uuid4().hex,
            name=name,
            email=email,
            password_hash=hash_password(password),
            created_at=utc_now()
        )
        self._users[account.id] = account
        return account

    def get_by_email(self, email: str) -> Optional[UserAccount]:
        email = email.lower()
        return next((u for u in self._users.values() if u.email == email), None)

    def get_by_id(self, user_id: str) -> Optional[UserAccount]:
        return self._users.get(user_id)


class UserService(UserStore):
    """Durable account store on the users table"""

    def __init__(self, engine: Engine):
        self.engine = engine

    @staticmethod
    def _to_account(record: Optional[UserRecord]) -> Optional[UserAccount]:
        if record is None:
            return None
        return UserAccount(
            id=record.id,
            name=record.name,
            email=record.email,
            password_hash=record.password_hash,
            created_at=record.created_at
        )

    def create_user(self, name: str, email: str, password: str) -> UserAccount:
        email = email.lower()
        if self.get_by_email(email) is not None:
            raise ConflictError("Email already in use")

        record = UserRecord(name=name, email=email, password_hash=hash_password(password))
        try:
            with Session(self.engine) as session:
                session.add(record)
                session.commit()
                session.refresh(record)
                logger.info(f"Created user {record.id}")
                return self._to_account(record)
        except IntegrityError as e:
            raise ConflictError("Email already in use") from e
        except SQLAlchemyError as e:
            logger.error(f"User storage failure: {e.__class__.__name__}")
            raise PersistenceError("Account storage is unavailable") from e

    def get_by_email(self, email: str) -> Optional[UserAccount]:
        try:
            with Session(self.engine) as session:
                statement = select(UserRecord).where(UserRecord.email == email.lower())
                return self._to_account(session.exec(statement).first())
        except SQLAlchemyError as e:
            logger.error(f"User storage failure: {e.__class__.__name__}")
            raise PersistenceError("Account storage is unavailable") from e

    def get_by_id(self, user_id: str) -> Optional[UserAccount]:
        try:
            with Session(self.engine) as session:
                return self._to_account(session.get(UserRecord, user_id))
        except SQLAlchemyError as e:
            logger.error(f"User storage failure: {e.__class__.__name__}")
            raise PersistenceError("Account storage is unavailable") from e
