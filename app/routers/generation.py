"""
Document generation and AI editing endpoints.

POST /generate  — questionnaire answers -> full document.
POST /edit      — (document, instruction) -> full edited document.

POST /generate-document and POST /update-document are JSON-wrapped blocking
variants of the same two operations (``{"document": ...}`` and
``{"updatedDocument": ...}``).

Both answer with Server-Sent Events when the request carries
``Accept: text/event-stream`` and with a plain-text body otherwise.  Provider
failures that happen before the first delta are reported as JSON errors
(502); a connection dropped mid-stream ends the event stream without the
``[DONE]`` marker so clients can tell the document is incomplete.
"""
from __future__ import annotations

import json
import logging
from typing import AsyncIterator

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse, StreamingResponse

from app.models.schemas import (
    EditRequest,
    GenerateDocumentRequest,
    GenerateDocumentResponse,
    GenerateRequest,
    UpdateDocumentRequest,
    UpdateDocumentResponse,
)
from app.services.editing import DocumentEditService
from app.services.exceptions import GenerationError
from app.services.generation import DocumentGenerationService
from app.services.llm_client import TextDeltaStream
from app.utils.helpers import truncate

logger = logging.getLogger(__name__)

router = APIRouter()

SSE_MEDIA_TYPE = "text/event-stream"
SSE_DONE = "data: [DONE]\n\n"


def get_generation_service() -> DocumentGenerationService:
    return DocumentGenerationService()


def get_edit_service() -> DocumentEditService:
    return DocumentEditService()


def _wants_event_stream(request: Request) -> bool:
    return SSE_MEDIA_TYPE in request.headers.get("accept", "")


def _sse_event(text: str) -> str:
    return f"data: {json.dumps({'text': text})}\n\n"


async def _sse_body(stream: TextDeltaStream) -> AsyncIterator[str]:
    try:
        async for delta in stream:
            yield _sse_event(delta)
    except GenerationError as exc:
        logger.error("Stream ended early: %s", exc.message)
        return
    finally:
        await stream.aclose()
    yield SSE_DONE


def _event_stream_response(stream: TextDeltaStream) -> StreamingResponse:
    return StreamingResponse(
        _sse_body(stream),
        media_type=SSE_MEDIA_TYPE,
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


# ---------------------------------------------------------------------------
# Generate
# ---------------------------------------------------------------------------

@router.post("/generate")
async def generate_document(
    body: GenerateRequest,
    request: Request,
    service: DocumentGenerationService = Depends(get_generation_service),
):
    """
    Generate a document from a template and the questionnaire answers.

    - Unknown ``templateId`` -> 404
    - Provider failure -> 502
    """
    if _wants_event_stream(request):
        stream = await service.stream(body.template_id, body.answers)
        return _event_stream_response(stream)

    content = await service.generate(body.template_id, body.answers)
    return PlainTextResponse(content)


# ---------------------------------------------------------------------------
# Edit
# ---------------------------------------------------------------------------

@router.post("/edit")
async def edit_document(
    body: EditRequest,
    request: Request,
    service: DocumentEditService = Depends(get_edit_service),
):
    """
    Apply a natural-language instruction to a document.

    Blank content or instruction -> 400, before the provider is contacted.
    """
    logger.info("Edit requested: %r", truncate(body.instruction))
    if _wants_event_stream(request):
        stream = await service.stream_edit(body.content, body.instruction)
        return _event_stream_response(stream)

    edited = await service.edit(body.content, body.instruction)
    return PlainTextResponse(edited)


# ---------------------------------------------------------------------------
# JSON-wrapped blocking variants
# ---------------------------------------------------------------------------

@router.post("/generate-document", response_model=GenerateDocumentResponse)
async def generate_document_json(
    body: GenerateDocumentRequest,
    service: DocumentGenerationService = Depends(get_generation_service),
):
    """Generate a document and return it as ``{"document": ...}``."""
    content = await service.generate(body.template_id, body.form_data)
    return GenerateDocumentResponse(document=content)


@router.post("/update-document", response_model=UpdateDocumentResponse)
async def update_document_json(
    body: UpdateDocumentRequest,
    service: DocumentEditService = Depends(get_edit_service),
):
    """Apply an edit instruction and return ``{"updatedDocument": ...}``."""
    logger.info("Edit requested: %r", truncate(body.edit_request))
    edited = await service.edit(body.document, body.edit_request)
    return UpdateDocumentResponse(updated_document=edited)
