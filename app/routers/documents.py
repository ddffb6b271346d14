"""
Saved document endpoints (signed-in users only).

POST   /                      — save a finalized document.
POST   /drafts                — create or refresh the draft for a template.
GET    /                      — list own documents (?include_drafts=true for drafts too).
GET    /drafts                — list own drafts.
GET    /drafts/{template_id}  — own drafts for one template.
GET    /{id}                  — one document.
PATCH  /{id}                  — update title and/or content.
PUT    /{id}/progress         — auto-save content (and title).
POST   /{id}/finalize         — turn a draft into a finalized document.
DELETE /{id}                  — delete; finalized documents take their drafts along.

Documents owned by someone else are reported as 404.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies.auth import (
    SessionContext,
    ensure_owned,
    get_or_create_user,
    get_session_context,
)
from app.models.database_models import Document
from app.models.schemas import (
    DocumentCreateRequest,
    DocumentFinalizeRequest,
    DocumentProgressRequest,
    DocumentProgressResponse,
    DocumentResponse,
    DocumentUpdateRequest,
)
from app.services.document_repository import DocumentRepository

logger = logging.getLogger(__name__)

router = APIRouter()


def get_repository(db: AsyncSession = Depends(get_db)) -> DocumentRepository:
    return DocumentRepository(db)


def _storage_failure(action: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Error {action}. Please try again.",
    )


async def _owned_document(
    document_id: str,
    ctx: SessionContext,
    repo: DocumentRepository,
) -> Document:
    document = await repo.get_document(document_id)
    return ensure_owned(document, ctx, document_id)


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------

@router.post("", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
async def create_document(
    body: DocumentCreateRequest,
    ctx: SessionContext = Depends(get_or_create_user),
    repo: DocumentRepository = Depends(get_repository),
) -> Document:
    """Save a finalized document.  Never deduplicates."""
    document = await repo.create_document(
        ctx.user_id, body.title, body.content, body.template_id, body.answers
    )
    if document is None:
        raise _storage_failure("saving document")
    return document


@router.post("/drafts", response_model=DocumentResponse)
async def create_draft(
    body: DocumentCreateRequest,
    ctx: SessionContext = Depends(get_or_create_user),
    repo: DocumentRepository = Depends(get_repository),
) -> Document:
    """
    Find-or-update the caller's draft for ``templateId``.

    Returns the refreshed existing draft when one exists, otherwise a new one.
    """
    draft = await repo.create_draft_document(
        ctx.user_id, body.title, body.content, body.template_id, body.answers
    )
    if draft is None:
        raise _storage_failure("saving draft")
    return draft


# ---------------------------------------------------------------------------
# Read
# ---------------------------------------------------------------------------

@router.get("", response_model=List[DocumentResponse])
async def list_documents(
    include_drafts: bool = Query(False),
    ctx: SessionContext = Depends(get_session_context),
    repo: DocumentRepository = Depends(get_repository),
) -> List[Document]:
    return await repo.get_documents_by_user(ctx.user_id, include_drafts=include_drafts)


@router.get("/drafts", response_model=List[DocumentResponse])
async def list_drafts(
    ctx: SessionContext = Depends(get_session_context),
    repo: DocumentRepository = Depends(get_repository),
) -> List[Document]:
    return await repo.get_draft_documents(ctx.user_id)


@router.get("/drafts/{template_id}", response_model=List[DocumentResponse])
async def list_drafts_for_template(
    template_id: str,
    ctx: SessionContext = Depends(get_session_context),
    repo: DocumentRepository = Depends(get_repository),
) -> List[Document]:
    return await repo.get_drafts_by_template_id(ctx.user_id, template_id)


@router.get("/{document_id}", response_model=DocumentResponse)
async def get_document(
    document_id: str,
    ctx: SessionContext = Depends(get_session_context),
    repo: DocumentRepository = Depends(get_repository),
) -> Document:
    return await _owned_document(document_id, ctx, repo)


# ---------------------------------------------------------------------------
# Update
# ---------------------------------------------------------------------------

@router.patch("/{document_id}", response_model=DocumentResponse)
async def update_document(
    document_id: str,
    body: DocumentUpdateRequest,
    ctx: SessionContext = Depends(get_session_context),
    repo: DocumentRepository = Depends(get_repository),
) -> Document:
    await _owned_document(document_id, ctx, repo)
    document = await repo.update_document(document_id, body.model_dump(exclude_unset=True))
    if document is None:
        raise _storage_failure("updating document")
    return document


@router.put("/{document_id}/progress", response_model=DocumentProgressResponse)
async def save_progress(
    document_id: str,
    body: DocumentProgressRequest,
    ctx: SessionContext = Depends(get_session_context),
    repo: DocumentRepository = Depends(get_repository),
) -> DocumentProgressResponse:
    """Auto-save target.  Title is only changed when a non-empty one is sent."""
    await _owned_document(document_id, ctx, repo)
    ok = await repo.save_document_progress(document_id, body.content, body.title)
    if not ok:
        raise _storage_failure("saving progress")
    return DocumentProgressResponse(success=True)


@router.post("/{document_id}/finalize", response_model=DocumentResponse)
async def finalize_document(
    document_id: str,
    body: Optional[DocumentFinalizeRequest] = None,
    ctx: SessionContext = Depends(get_session_context),
    repo: DocumentRepository = Depends(get_repository),
) -> Document:
    await _owned_document(document_id, ctx, repo)
    title = body.title if body else None
    document = await repo.finalize_draft_document(document_id, title)
    if document is None:
        raise _storage_failure("finalizing document")
    return document


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------

@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(
    document_id: str,
    ctx: SessionContext = Depends(get_session_context),
    repo: DocumentRepository = Depends(get_repository),
) -> None:
    await _owned_document(document_id, ctx, repo)
    if not await repo.delete_document(document_id):
        raise _storage_failure("deleting document")
    logger.info("User %s deleted document %s", ctx.user_id, document_id)
