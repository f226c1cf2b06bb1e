"""JWT authentication for FastAPI routes."""
from datetime import timedelta
from typing import Optional

from fastapi import Request
from jose import jwt, JWTError
from pydantic import BaseModel

from bizpilot.errors import AuthenticationError
from bizpilot.utils.time import utc_now

ALGORITHM = "HS256"
TOKEN_TTL = timedelta(days=7)


class CurrentUser(BaseModel):
    """User information extracted from JWT."""
    user_id: str
    email: Optional[str] = None


def create_access_token(user_id: str, email: str, secret: str) -> str:
    """Signed HS256 token carrying sub and email, valid for seven days."""
    now = utc_now()
    payload = {"sub": user_id, "email": email, "iat": now, "exp": now + TOKEN_TTL}
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def decode_access_token(token: str, secret: str) -> CurrentUser:
    """
    Raises:
        AuthenticationError: bad signature, expired, or missing subject
    """
    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except JWTError:
        raise AuthenticationError("Invalid token")

    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationError("Invalid token")
    return CurrentUser(user_id=user_id, email=payload.get("email"))


async def get_current_user(request: Request) -> CurrentUser:
    """
    Validate the Bearer token from the Authorization header.

    Raises:
        AuthenticationError: header missing (Unauthorized) or token invalid
    """
    auth_header = request.headers.get("authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise AuthenticationError("Unauthorized")

    token = auth_header[7:]  # Remove "Bearer " prefix
    return decode_access_token(token, request.app.state.settings.jwt_secret)
