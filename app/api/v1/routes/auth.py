"""Authentication routes for registration, login, logout and session introspection."""
from typing import Optional
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from app.schemas import (
    UserCreate,
    UserOut,
    Token,
    LoginRequest,
    LoginResponse,
    RefreshTokenRequest,
    MessageResponse,
    AuthStatus,
)
from app.services.auth_service import AuthService
from app.db.session import get_session
from app.db.models.user import User
from app.auth import get_current_user, get_optional_user, bearer_token
from app.core.rate_limit import limiter

router = APIRouter(prefix="/auth", tags=["auth"])


def get_auth_service(session: AsyncSession = Depends(get_session)) -> AuthService:
    """
    Dependency injection for AuthService.

    Args:
        session: Database session

    Returns:
        AuthService instance
    """
    return AuthService(session)


@router.post("/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
@limiter.limit("3/minute")
async def register(
    request: Request,
    payload: UserCreate,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Register a new user account.

    Rate limit: 3 requests per minute

    Returns:
        Created user, without credential material

    Raises:
        HTTPException: 409 if username or email exists, 400 if the password is weak
    """
    return await auth_service.register(payload)


@router.post("/login", response_model=LoginResponse)
@limiter.limit("5/minute")
async def login(
    request: Request,
    form_data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Log in with username (or email) and password.

    Rate limit: 5 requests per minute

    Returns:
        The session user with access and refresh tokens
    """
    return await auth_service.login(form_data)


@router.post("/refresh", response_model=Token)
@limiter.limit("10/minute")
async def refresh_access_token(
    request: Request,
    payload: RefreshTokenRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """Exchange a refresh token for a new access token."""
    return await auth_service.refresh_access_token(payload.refresh_token)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    token: Optional[str] = Depends(bearer_token),
    auth_service: AuthService = Depends(get_auth_service)
):
    """Revoke the presented access token. Succeeds with or without one."""
    await auth_service.logout(token)
    return {"message": "Logout successful"}


@router.get("/me", response_model=UserOut)
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    return current_user


@router.get("/status", response_model=AuthStatus)
async def auth_status(current_user: Optional[User] = Depends(get_optional_user)):
    return {"authenticated": current_user is not None, "user": current_user}
