"""
Authentication dependencies for FastAPI routes.

Extracts user identity from the X-User-Id header (set by the Next.js frontend
after sign-in) into an explicit SessionContext that routes pass on to the
repository and services.  Anonymous callers may still generate, edit and
export documents; persistence requires a context.
"""
from __future__ import annotations

import dataclasses
import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.database_models import Document, User
from app.utils.helpers import placeholder_email

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class SessionContext:
    """Identity of the caller for one request."""

    user_id: str
    email: Optional[str] = None
    name: Optional[str] = None


async def get_session_context(
    x_user_id: str = Header(..., alias="X-User-Id"),
    x_user_email: Optional[str] = Header(None, alias="X-User-Email"),
    x_user_name: Optional[str] = Header(None, alias="X-User-Name"),
) -> SessionContext:
    """Build the caller's context. Raises 401 if the user id is blank."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header.",
        )
    return SessionContext(user_id=x_user_id.strip(), email=x_user_email, name=x_user_name)


async def get_optional_session_context(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    x_user_email: Optional[str] = Header(None, alias="X-User-Email"),
    x_user_name: Optional[str] = Header(None, alias="X-User-Name"),
) -> Optional[SessionContext]:
    """Context if the caller is signed in, None for anonymous use."""
    if not x_user_id or not x_user_id.strip():
        return None
    return SessionContext(user_id=x_user_id.strip(), email=x_user_email, name=x_user_name)


async def get_or_create_user(
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
) -> SessionContext:
    """
    Ensure the caller exists in the local users table. Creates if needed.

    An email already owned by another user id falls back to the
    ``<id>@paperfix.local`` placeholder; a concurrent insert of the same
    email is reported as 409.
    """
    user = await db.get(User, ctx.user_id)

    if user is None:
        email = ctx.email or placeholder_email(ctx.user_id)
        taken = await db.execute(select(User.id).where(User.email == email))
        if taken.scalar_one_or_none() is not None:
            logger.warning("Email already registered to another user; using placeholder for id=%s", ctx.user_id)
            email = placeholder_email(ctx.user_id)

        user = User(id=ctx.user_id, email=email, name=ctx.name)
        db.add(user)
        try:
            await db.flush()
        except IntegrityError as exc:
            await db.rollback()
            logger.warning("User insert conflicted for id=%s: %s", ctx.user_id, exc.orig)
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="User record conflicts with an existing account",
            ) from exc
        logger.info("Created new user: id=%s email=%s", ctx.user_id, user.email)

    return ctx


def ensure_owned(document: Optional[Document], ctx: SessionContext, document_id: str) -> Document:
    """
    Return *document* if it exists and belongs to the caller, else raise 404.
    Other users' documents are indistinguishable from missing ones.
    """
    if document is None or document.user_id != ctx.user_id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Document {document_id} not found.",
        )
    return document
