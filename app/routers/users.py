"""
User profile endpoints.

PUT /me — store the profile the frontend received from its sign-in provider.
GET /me — read it back.
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies.auth import SessionContext, get_session_context
from app.models.database_models import User
from app.models.schemas import UserProfileRequest, UserProfileResponse
from app.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.put("/me", response_model=UserProfileResponse)
async def upsert_profile(
    body: UserProfileRequest,
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
) -> User:
    service = UserService(db)
    if not await service.create_or_update_profile(ctx.user_id, body):
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error saving profile. Please try again.",
        )
    user = await service.get_profile(ctx.user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error loading profile. Please try again.",
        )
    return user


@router.get("/me", response_model=UserProfileResponse)
async def get_profile(
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
) -> User:
    user = await UserService(db).get_profile(ctx.user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Profile not found.",
        )
    return user
