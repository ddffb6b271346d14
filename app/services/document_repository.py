"""
Document persistence and draft/finalized lifecycle.

Public API
----------
DocumentRepository.create_document(owner, title, content, template_id, answers)       -> Optional[Document]
DocumentRepository.create_draft_document(owner, title, content, template_id, answers) -> Optional[Document]
DocumentRepository.save_document_progress(document_id, content, title=None)          -> bool
DocumentRepository.finalize_draft_document(document_id, title=None)                  -> Optional[Document]
DocumentRepository.get_drafts_by_template_id(owner, template_id)                     -> List[Document]
DocumentRepository.get_documents_by_user(owner, include_drafts=False)                -> List[Document]
DocumentRepository.get_draft_documents(owner)                                        -> List[Document]
DocumentRepository.get_document(document_id)                                         -> Optional[Document]
DocumentRepository.update_document(document_id, fields)                              -> Optional[Document]
DocumentRepository.delete_document(document_id)                                      -> bool

Lifecycle: NONE -> DRAFT -> FINAL, or NONE -> FINAL directly.  FINAL is
terminal.  At most one DRAFT exists per (owner, template_id); creating a
draft when one exists updates it in place.

Failure semantics: storage errors never propagate.  Each public method
commits its own unit of work; on failure the session is rolled back, the
error logged, and a sentinel (None / False / []) returned.  Callers must
check return values.
"""
from __future__ import annotations

import functools
import logging
from typing import Any, Awaitable, Callable, List, Mapping, Optional, TypeVar

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.database_models import Document, User, utcnow
from app.services.exceptions import PersistenceError
from app.utils.helpers import placeholder_email

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _storage_boundary(sentinel: Callable[[], Any]):
    """
    Convert storage failures raised by a repository method into *sentinel()*.

    SQLAlchemy errors are wrapped as PersistenceError and roll the session
    back.  PersistenceError raised directly by the method (a missing row on a
    write path) has nothing to undo and is only logged.
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(self: "DocumentRepository", *args: Any, **kwargs: Any) -> T:
            try:
                return await func(self, *args, **kwargs)
            except PersistenceError as exc:
                logger.error("Storage error: %s", exc.message)
                return sentinel()
            except SQLAlchemyError as exc:
                error = PersistenceError(func.__name__, exc)
                await self._rollback()
                logger.error("Storage error: %s", error.message)
                return sentinel()

        return wrapper

    return decorator


class DocumentRepository:
    """CRUD and lifecycle operations over the ``documents`` table."""

    # Fields update_document may touch; id/owner/template/answers/lifecycle are not among them
    MUTABLE_FIELDS = frozenset({"title", "content"})

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    @_storage_boundary(lambda: None)
    async def create_document(
        self,
        owner: str,
        title: str,
        content: str,
        template_id: str,
        answers: Mapping[str, str],
    ) -> Optional[Document]:
        """Insert a new finalized document.  Never deduplicates."""
        document = await self._insert(owner, title, content, template_id, answers, is_draft=False)
        logger.info("Created document id=%s template=%s for user=%s", document.id, template_id, owner)
        return document

    @_storage_boundary(lambda: None)
    async def create_draft_document(
        self,
        owner: str,
        title: str,
        content: str,
        template_id: str,
        answers: Mapping[str, str],
    ) -> Optional[Document]:
        """
        Find-or-update the single draft for (owner, template_id).

        The most recently updated existing draft receives the new title,
        content and answers; otherwise a new draft row is inserted.
        """
        existing = await self.get_drafts_by_template_id(owner, template_id)
        if existing:
            draft = existing[0]
            draft.title = title
            draft.content = content
            draft.template_answers = dict(answers)
            draft.updated_at = utcnow()
            await self._db.commit()
            await self._db.refresh(draft)
            logger.info("Updated existing draft id=%s template=%s for user=%s", draft.id, template_id, owner)
            return draft

        draft = await self._insert(owner, title, content, template_id, answers, is_draft=True)
        logger.info("Created draft id=%s template=%s for user=%s", draft.id, template_id, owner)
        return draft

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    @_storage_boundary(lambda: False)
    async def save_document_progress(
        self,
        document_id: str,
        content: str,
        title: Optional[str] = None,
    ) -> bool:
        """
        Auto-save: content always, title only when a non-empty one is given.

        Last write wins; there is no optimistic-lock check, so repeated calls
        with the same payload are harmless.
        """
        document = await self._require(document_id, "save_document_progress")
        document.content = content
        if title:
            document.title = title
        document.updated_at = utcnow()
        await self._db.commit()
        await self._db.refresh(document)
        return True

    @_storage_boundary(lambda: None)
    async def finalize_draft_document(
        self,
        document_id: str,
        title: Optional[str] = None,
    ) -> Optional[Document]:
        """Mark a document final.  Calling it on an already-final document is a no-op flip."""
        document = await self._require(document_id, "finalize_draft_document")
        document.is_draft = False
        if title:
            document.title = title
        document.updated_at = utcnow()
        await self._db.commit()
        await self._db.refresh(document)
        logger.info("Finalized document id=%s", document_id)
        return document

    @_storage_boundary(lambda: None)
    async def update_document(
        self,
        document_id: str,
        fields: Mapping[str, Any],
    ) -> Optional[Document]:
        """
        Generic partial update of mutable fields.

        ``updated_at`` is always stamped here, whatever the caller passed.
        """
        ignored = set(fields) - self.MUTABLE_FIELDS - {"updated_at"}
        if ignored:
            logger.warning(
                "update_document id=%s: ignoring immutable/unknown fields %s",
                document_id,
                sorted(ignored),
            )

        document = await self._require(document_id, "update_document")
        for name in self.MUTABLE_FIELDS:
            if name in fields and fields[name] is not None:
                setattr(document, name, fields[name])
        document.updated_at = utcnow()
        await self._db.commit()
        await self._db.refresh(document)
        return document

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    @_storage_boundary(list)
    async def get_drafts_by_template_id(self, owner: str, template_id: str) -> List[Document]:
        """Drafts for (owner, template_id), most recently updated first."""
        result = await self._db.execute(
            select(Document)
            .where(
                Document.user_id == owner,
                Document.template_id == template_id,
                Document.is_draft == True,  # noqa: E712
            )
            .order_by(Document.updated_at.desc(), Document.created_at.desc())
        )
        return list(result.scalars().all())

    @_storage_boundary(list)
    async def get_documents_by_user(self, owner: str, include_drafts: bool = False) -> List[Document]:
        """All of an owner's documents, newest first; drafts only when asked for."""
        stmt = select(Document).where(Document.user_id == owner)
        if not include_drafts:
            stmt = stmt.where(Document.is_draft == False)  # noqa: E712
        result = await self._db.execute(stmt.order_by(Document.created_at.desc()))
        return list(result.scalars().all())

    @_storage_boundary(list)
    async def get_draft_documents(self, owner: str) -> List[Document]:
        result = await self._db.execute(
            select(Document)
            .where(Document.user_id == owner, Document.is_draft == True)  # noqa: E712
            .order_by(Document.updated_at.desc())
        )
        return list(result.scalars().all())

    @_storage_boundary(lambda: None)
    async def get_document(self, document_id: str) -> Optional[Document]:
        return await self._db.get(Document, document_id)

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    @_storage_boundary(lambda: False)
    async def delete_document(self, document_id: str) -> bool:
        """
        Delete a document.

        Deleting a finalized document first removes every draft sharing its
        (owner, template_id).  That cleanup is best-effort: a failure is
        logged and the target row is still deleted.  Deleting a draft never
        cascades.
        """
        document = await self._require(document_id, "delete_document")
        owner, template_id, is_draft = document.user_id, document.template_id, document.is_draft

        if not is_draft:
            try:
                result = await self._db.execute(
                    delete(Document).where(
                        Document.user_id == owner,
                        Document.template_id == template_id,
                        Document.is_draft == True,  # noqa: E712
                    )
                )
                await self._db.commit()
                logger.info(
                    "Deleted %d draft(s) for user=%s template=%s",
                    result.rowcount,
                    owner,
                    template_id,
                )
            except SQLAlchemyError as exc:
                await self._rollback()
                logger.error("Error deleting associated drafts of id=%s: %s", document_id, exc)

        await self._db.execute(delete(Document).where(Document.id == document_id))
        await self._db.commit()
        logger.info("Deleted document id=%s", document_id)
        return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _insert(
        self,
        owner: str,
        title: str,
        content: str,
        template_id: str,
        answers: Mapping[str, str],
        *,
        is_draft: bool,
    ) -> Document:
        await self._ensure_owner(owner)
        now = utcnow()
        document = Document(
            user_id=owner,
            title=title,
            content=content,
            template_id=template_id,
            template_answers=dict(answers),
            is_draft=is_draft,
            created_at=now,
            updated_at=now,
        )
        self._db.add(document)
        await self._db.commit()
        await self._db.refresh(document)
        return document

    async def _ensure_owner(self, owner: str) -> None:
        """Insert a placeholder users row so the owner foreign key holds."""
        if await self._db.get(User, owner) is None:
            self._db.add(User(id=owner, email=placeholder_email(owner)))
            await self._db.flush()
            logger.info("Created placeholder user id=%s", owner)

    async def _require(self, document_id: str, operation: str) -> Document:
        document = await self._db.get(Document, document_id)
        if document is None:
            raise PersistenceError(operation, LookupError(f"document {document_id} not found"))
        return document

    async def _rollback(self) -> None:
        try:
            await self._db.rollback()
        except SQLAlchemyError as exc:
            logger.warning("Rollback failed: %s", exc)
