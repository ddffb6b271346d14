"""
Conversational document editing.

Every call is independent: the caller sends the full current document and one
free-text instruction, and receives the full replacement document.  Context
across turns is the caller's job (resend the latest content each time).
"""
from __future__ import annotations

import logging
from typing import Optional

from app.services.exceptions import GenerationError, ValidationError
from app.services.llm_client import GeminiClient, TextDeltaStream

logger = logging.getLogger(__name__)


_EDITOR_SYSTEM_INSTRUCTION = (
    "You are an expert legal document editor that focuses on making precise "
    "edits to documents."
)

_EDIT_PROMPT = """\
You are an expert legal document editor. Here is the current document content:

---BEGIN DOCUMENT---
{content}
---END DOCUMENT---

User instruction: "{instruction}"

Provide the complete, updated document with the requested changes.
Maintain the same formatting and structure unless specifically requested to change it.
Return ONLY the updated document content, without any explanations or additional text."""


def build_edit_prompt(content: str, instruction: str) -> str:
    return _EDIT_PROMPT.format(content=content, instruction=instruction)


def _validate(content: str, instruction: str) -> None:
    if not content or not content.strip():
        raise ValidationError("Document content is required", field="content")
    if not instruction or not instruction.strip():
        raise ValidationError("Edit instruction is required", field="instruction")


class DocumentEditService:
    """Relays (document, instruction) pairs to the LLM provider."""

    def __init__(self, client: Optional[GeminiClient] = None) -> None:
        self._client = client or GeminiClient()

    async def edit(self, content: str, instruction: str) -> str:
        """
        Blocking mode: return the complete edited document.

        A blank provider answer is an error rather than a valid result, so an
        edit can never silently wipe the document.
        """
        _validate(content, instruction)
        logger.info("Editing document (%d chars, blocking)", len(content))
        edited = await self._client.generate_text(
            build_edit_prompt(content, instruction.strip()),
            system_instruction=_EDITOR_SYSTEM_INSTRUCTION,
        )
        if not edited.strip():
            raise GenerationError("Empty response from AI service")
        return edited

    async def stream_edit(self, content: str, instruction: str) -> TextDeltaStream:
        """Streaming mode: validation happens before any network call."""
        _validate(content, instruction)
        logger.info("Editing document (%d chars, streaming)", len(content))
        return await self._client.open_stream(
            build_edit_prompt(content, instruction.strip()),
            system_instruction=_EDITOR_SYSTEM_INSTRUCTION,
        )
