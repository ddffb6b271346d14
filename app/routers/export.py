"""
Export endpoints.

POST /download — render the document to a PDF attachment.
POST /email    — render the PDF and send it to an address via the email provider.
"""
from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends, Response

from app.models.schemas import DownloadRequest, EmailRequest, EmailResponse
from app.services.email_sender import EmailSender
from app.services.exceptions import ValidationError
from app.services.pdf_renderer import PdfRenderer
from app.utils.helpers import sanitize_filename

logger = logging.getLogger(__name__)

router = APIRouter()


def get_pdf_renderer() -> PdfRenderer:
    return PdfRenderer()


def get_email_sender() -> EmailSender:
    return EmailSender()


@router.post("/download")
async def download_pdf(
    body: DownloadRequest,
    renderer: PdfRenderer = Depends(get_pdf_renderer),
) -> Response:
    """Return ``application/pdf`` named after the sanitized title."""
    if not body.content.strip():
        raise ValidationError("Document content is required", field="content")

    # reportlab is synchronous; keep it off the event loop
    pdf_bytes = await asyncio.to_thread(renderer.render, body.content, body.title)
    filename = f"{sanitize_filename(body.title)}.pdf"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/email", response_model=EmailResponse)
async def email_pdf(
    body: EmailRequest,
    sender: EmailSender = Depends(get_email_sender),
) -> EmailResponse:
    """
    Email the document as a PDF attachment.

    - Missing email or content -> 400
    - Provider refusal or outage -> 502
    """
    result = await sender.send(body.email, body.content, body.title)
    return EmailResponse(message_id=result.message_id)
