"""Authentication service for registration, login and token management."""
from typing import Optional
from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from app.schemas import UserCreate, LoginRequest
from app.db.models.user import User
from app.db.repositories import (
    create_user as db_create_user,
    find_conflicting_user,
    get_user_by_login,
)
from app.core.exceptions import BadRequestError, DuplicateError
from app.core.logging import logger
from app.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    identity_claims,
    revoke_token,
    validate_password,
    verify_password,
)


class AuthService:
    """
    Service layer for authentication operations.

    Handles user registration, login, token refresh, and logout.
    """

    def __init__(self, session: AsyncSession):
        """
        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def register(self, payload: UserCreate) -> User:
        """
        Register a new user.

        Args:
            payload: username, email, password and names

        Returns:
            Created user object

        Raises:
            BadRequestError: If the password is weak
            DuplicateError: If the username or email is already taken
        """
        try:
            validate_password(payload.password)
        except ValueError as e:
            raise BadRequestError(str(e))

        if await find_conflicting_user(self.session, payload.username, payload.email):
            raise DuplicateError()

        user = await db_create_user(self.session, payload)
        logger.info(f"Registered user {user.id} ({user.username})")
        return user

    async def login(self, form_data: LoginRequest) -> dict:
        """
        Check credentials and issue access and refresh tokens.

        Unknown users and wrong passwords fail identically so the response
        does not reveal which usernames exist.

        Returns:
            Dictionary with the session user and both tokens

        Raises:
            HTTPException: 401 if credentials are invalid
        """
        user = await get_user_by_login(self.session, form_data.username)
        if not user or not verify_password(form_data.password, user.password_hash):
            logger.warning(f"Failed login attempt for '{form_data.username}'")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid username or password",
            )

        claims = identity_claims(user)
        return {
            "user": user,
            "access_token": create_access_token(claims),
            "refresh_token": create_refresh_token(claims),
            "token_type": "bearer",
        }

    async def refresh_access_token(self, refresh_token: str) -> dict:
        """
        Issue a new access token from a valid refresh token.

        Raises:
            HTTPException: If the refresh token is invalid, expired or not a refresh token
        """
        try:
            token_data = decode_token(refresh_token)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid refresh token",
            )

        if token_data.get("type") != "refresh":
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid token type",
            )

        claims = {k: v for k, v in token_data.items() if k not in ("exp", "type")}
        return {
            "access_token": create_access_token(claims),
            "token_type": "bearer",
        }

    async def logout(self, token: Optional[str]) -> None:
        """Revoke the caller's access token, if one was presented."""
        if token:
            await revoke_token(token)
