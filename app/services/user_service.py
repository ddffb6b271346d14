"""
User profile persistence (``users`` table).

Same failure contract as DocumentRepository: storage errors are logged and
turned into ``False`` / ``None``.
"""
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.database_models import User, utcnow
from app.models.schemas import UserProfileRequest

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def create_or_update_profile(self, user_id: str, profile: UserProfileRequest) -> bool:
        """Upsert the profile row for *user_id*.  Returns success."""
        try:
            user = await self._db.get(User, user_id)
            if user is None:
                user = User(id=user_id, email=profile.email, created_at=utcnow())
                self._db.add(user)
                logger.info("Creating user profile id=%s", user_id)
            user.email = profile.email
            user.name = profile.name
            user.avatar_url = profile.avatar_url
            user.provider = profile.provider
            user.updated_at = utcnow()
            await self._db.commit()
            return True
        except SQLAlchemyError as exc:
            await self._db.rollback()
            logger.error("Error saving user profile id=%s: %s", user_id, exc)
            return False

    async def get_profile(self, user_id: str) -> Optional[User]:
        try:
            return await self._db.get(User, user_id)
        except SQLAlchemyError as exc:
            logger.error("Error fetching user profile id=%s: %s", user_id, exc)
            return None
