"""
Access gate dependencies.

Each route declares the gate it needs; the resolved ``User`` is handed to
the handler as an argument, never stored globally.
"""
from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from app.db.session import get_session
from app.db.models.user import User
from app.core.exceptions import ForbiddenError
from app.core.security import decode_token, is_token_revoked

# auto_error is off so a missing header yields our own 401 (HTTPBearer would send 403)
security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def _resolve_user(token: str, session: AsyncSession) -> User:
    """
    Turn a bearer token into the user it was issued for.

    Raises:
        HTTPException: 401 if the token is revoked, invalid, not an access
            token, or its user no longer exists
    """
    if await is_token_revoked(token):
        raise _unauthorized("Token has been revoked")

    try:
        payload = decode_token(token)
    except ValueError:
        raise _unauthorized("Could not validate credentials")

    if payload.get("type") != "access":
        raise _unauthorized("Invalid token type")

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise _unauthorized("Could not validate credentials")

    q = await session.execute(select(User).where(User.id == user_id))
    user = q.scalars().first()
    if not user:
        raise _unauthorized("Invalid session, please log in again")
    return user


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    session: AsyncSession = Depends(get_session),
) -> User:
    """Require an authenticated user."""
    if credentials is None:
        raise _unauthorized("Authentication required")
    return await _resolve_user(credentials.credentials, session)


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    session: AsyncSession = Depends(get_session),
) -> Optional[User]:
    """Attach the user when a valid token is present; never rejects."""
    if credentials is None:
        return None
    try:
        return await _resolve_user(credentials.credentials, session)
    except HTTPException:
        return None


def role_required(required_role: str):
    """
    Dependency requiring a role on top of authentication.

    Args:
        required_role: Role name required (e.g., 'admin')

    Returns:
        Dependency function
    """
    async def role_checker(user: User = Depends(get_current_user)) -> User:
        if getattr(user, "role", None) != required_role:
            raise ForbiddenError("Admin access required" if required_role == "admin" else "Forbidden")
        return user
    return role_checker


def bearer_token(credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)) -> Optional[str]:
    return credentials.credentials if credentials else None
