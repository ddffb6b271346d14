"""
Email delivery of rendered documents via the Resend REST API.

The PDF is rendered with PdfRenderer, base64-encoded and attached.  Provider
errors surface as ExportError; there are no retries.
"""
from __future__ import annotations

import asyncio
import base64
import dataclasses
import logging
from typing import Any, Dict, Optional

import httpx

from app.config import settings
from app.services.exceptions import ExportError, ValidationError
from app.services.pdf_renderer import PdfRenderer
from app.utils.helpers import sanitize_filename

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class EmailDeliveryResult:
    """Returned by EmailSender.send."""

    message_id: Optional[str]
    recipient: str
    attachment_name: str


def build_subject(title: Optional[str]) -> str:
    return f"Your Document: {title}" if title else "Your Generated Document"


def build_body(title: Optional[str]) -> str:
    suffix = f": {title}" if title else ""
    return f"Attached is your document{suffix}. Thank you for using our service."


class EmailSender:
    """Sends a document as a PDF attachment."""

    def __init__(
        self,
        renderer: Optional[PdfRenderer] = None,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._renderer = renderer or PdfRenderer()
        self.api_key = api_key if api_key is not None else settings.RESEND_API_KEY
        self.api_url = settings.RESEND_API_URL.rstrip("/")
        self.timeout = httpx.Timeout(float(settings.RESEND_TIMEOUT), connect=10.0)
        self._transport = transport

    def build_payload(self, recipient: str, pdf_bytes: bytes, title: Optional[str]) -> Dict[str, Any]:
        return {
            "from": f"{settings.RESEND_FROM_NAME} <{settings.RESEND_FROM_EMAIL}>",
            "to": [recipient],
            "subject": build_subject(title),
            "text": build_body(title),
            "attachments": [
                {
                    "filename": f"{sanitize_filename(title)}.pdf",
                    "content": base64.b64encode(pdf_bytes).decode("ascii"),
                }
            ],
        }

    async def send(
        self, recipient: str, content: str, title: Optional[str] = None
    ) -> EmailDeliveryResult:
        """
        Render, attach and dispatch.

        Raises:
            ValidationError: recipient or content missing
            ExportError: rendering failed, provider unreachable, or provider refused
        """
        if not recipient or not recipient.strip():
            raise ValidationError("Recipient email is required", field="email")
        if not content or not content.strip():
            raise ValidationError("Document content is required", field="content")
        if not self.api_key:
            raise ExportError("Email provider API key is not configured")

        recipient = recipient.strip()
        pdf_bytes = await asyncio.to_thread(self._renderer.render, content, title)
        payload = self.build_payload(recipient, pdf_bytes, title)

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(
                    f"{self.api_url}/emails",
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    json=payload,
                )
        except httpx.HTTPError as exc:
            logger.error("Email provider unreachable: %s", exc)
            raise ExportError(f"Failed to send email: {exc}") from exc

        if resp.status_code >= 400:
            logger.error("Email provider error: HTTP %d: %s", resp.status_code, resp.text[:200])
            raise ExportError(
                "Failed to send email",
                details={"provider_status": resp.status_code, "provider_error": resp.text[:200]},
            )

        message_id = None
        try:
            message_id = resp.json().get("id")
        except ValueError:
            logger.warning("Email provider returned a non-JSON acknowledgement")

        logger.info("Sent document email to %s (message_id=%s)", recipient, message_id)
        return EmailDeliveryResult(
            message_id=message_id,
            recipient=recipient,
            attachment_name=payload["attachments"][0]["filename"],
        )
