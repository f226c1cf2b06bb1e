"""Authentication router: signup, login and current user."""
from fastapi import APIRouter, Depends, Request
import logging

from bizpilot.dependencies import get_user_store
from bizpilot.errors import AuthenticationError
from bizpilot.middleware.auth import CurrentUser, create_access_token, get_current_user
from bizpilot.schemas.auth import LoginRequest, MeResponse, SignUpRequest, TokenResponse, UserPublic
from bizpilot.services.user_service import UserAccount, UserStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Authentication"])  # No prefix since main.py adds /api prefix


def _token_response(account: UserAccount, secret: str) -> TokenResponse:
    return TokenResponse(
        token=create_access_token(account.id, account.email, secret),
        user=UserPublic(id=account.id, name=account.name, email=account.email)
    )


@router.post("/auth/signup", response_model=TokenResponse)
async def sign_up(
    body: SignUpRequest,
    request: Request,
    users: UserStore = Depends(get_user_store)
):
    """Create an account; 409 when the email is taken."""
    account = users.create_user(body.name.strip(), body.email, body.password)
    logger.info(f"User signed up: {account.id}")
    return _token_response(account, request.app.state.settings.jwt_secret)


@router.post("/auth/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    request: Request,
    users: UserStore = Depends(get_user_store)
):
    account = users.authenticate(body.email, body.password)
    if account is None:
        raise AuthenticationError("Invalid credentials")
    return _token_response(account, request.app.state.settings.jwt_secret)


@router.get("/me", response_model=MeResponse)
async def me(
    current_user: CurrentUser = Depends(get_current_user),
    users: UserStore = Depends(get_user_store)
):
    account = users.get_by_id(current_user.user_id)
    if account is None:
        return MeResponse(user=None)
    return MeResponse(user=UserPublic(id=account.id, name=account.name, email=account.email))
