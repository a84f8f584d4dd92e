"""Admin-only user administration."""
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.schemas import UserOut
from app.db.session import get_session
from app.db.repositories import list_users, get_user
from app.auth import role_required
from app.core.exceptions import NotFoundError

router = APIRouter(prefix="/users", tags=["users"], dependencies=[Depends(role_required("admin"))])


@router.get("", response_model=List[UserOut])
async def get_users(session: AsyncSession = Depends(get_session)):
    return await list_users(session)


@router.get("/{user_id}", response_model=UserOut)
async def get_user_detail(user_id: int, session: AsyncSession = Depends(get_session)):
    user = await get_user(session, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user
