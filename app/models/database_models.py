"""
SQLAlchemy ORM models for the PaperFix database.
"""
from sqlalchemy import (
    Column,
    String,
    Text,
    DateTime,
    ForeignKey,
    Boolean,
    Index,
    JSON,
)
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
import uuid

from app.database import Base


def utcnow() -> datetime:
    """Timezone-aware current time; timestamps are stamped client-side so
    successive writes in one process are strictly ordered."""
    return datetime.now(timezone.utc)


def new_document_id() -> str:
    return str(uuid.uuid4())


# Models
class User(Base):
    """User account (synced from the auth provider)."""

    __tablename__ = "users"

    id = Column(String(255), primary_key=True)  # matches the auth provider's user id
    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=True)
    avatar_url = Column(String(1024), nullable=True)
    provider = Column(String(50), nullable=True)  # google, github, email, ...
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    documents = relationship("Document", back_populates="user", cascade="all, delete-orphan")


class Document(Base):
    """
    Generated document owned by a user.

    ``is_draft`` starts out True for auto-created drafts and flips to False
    exactly once on finalize; finalized rows never revert.  At most one draft
    exists per (user_id, template_id).
    """

    __tablename__ = "documents"

    id = Column(String(36), primary_key=True, default=new_document_id)
    user_id = Column(String(255), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(512), nullable=False)
    content = Column(Text, nullable=False, default="")
    template_id = Column(String(100), nullable=False, index=True)
    template_answers = Column(JSON, nullable=False, default=dict)  # question id -> answer
    is_draft = Column(Boolean, default=True, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="documents")

    __table_args__ = (
        Index("ix_documents_owner_template_draft", "user_id", "template_id", "is_draft"),
    )
