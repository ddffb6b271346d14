"""
Document generation: questionnaire answers -> prompt -> LLM -> document text.

Public API
----------
build_generation_prompt(template, answers)                 -> str
DocumentGenerationService.generate(template_id, answers)   -> str
DocumentGenerationService.stream(template_id, answers)     -> TextDeltaStream
"""
from __future__ import annotations

import logging
from typing import Mapping, Optional

from app.services.exceptions import TemplateNotFoundError
from app.services.llm_client import GeminiClient, TextDeltaStream
from app.services.template_catalog import Template, get_template

logger = logging.getLogger(__name__)

# Placeholder rendered for questions the caller left unanswered
MISSING_ANSWER = "N/A"


# ---------------------------------------------------------------------------
# Prompt templates
# ---------------------------------------------------------------------------

_GENERATION_PROMPT = """\
You are an expert legal document writer. Generate a {template_name} based on \
the following information:

{answer_lines}

Create a comprehensive, well-structured document that is professional and legally sound.
Use clear, concise language and proper legal terminology.
Format the document with proper sections, numbering, and hierarchical structure.
Include all necessary clauses and provisions typically found in a {template_name}."""


def build_generation_prompt(template: Template, answers: Mapping[str, str]) -> str:
    """
    Render the generation prompt for *template*.

    Questions appear in catalog order, each paired with its answer; blank or
    absent answers become ``N/A``.  Required-ness is not re-checked here.
    """
    answer_lines = "\n".join(
        f"{q.question}: {(answers.get(q.id) or '').strip() or MISSING_ANSWER}"
        for q in template.questions
    )
    return _GENERATION_PROMPT.format(
        template_name=template.name,
        answer_lines=answer_lines,
    )


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class DocumentGenerationService:
    """Builds generation prompts and relays them to the LLM provider."""

    def __init__(self, client: Optional[GeminiClient] = None) -> None:
        self._client = client or GeminiClient()

    def prepare_prompt(self, template_id: str, answers: Mapping[str, str]) -> str:
        template = get_template(template_id)
        if template is None:
            raise TemplateNotFoundError(template_id)
        return build_generation_prompt(template, answers)

    async def generate(self, template_id: str, answers: Mapping[str, str]) -> str:
        """Blocking mode: return the complete generated document."""
        prompt = self.prepare_prompt(template_id, answers)
        logger.info("Generating document for template=%s (blocking)", template_id)
        return await self._client.generate_text(prompt)

    async def stream(
        self, template_id: str, answers: Mapping[str, str]
    ) -> TextDeltaStream:
        """Streaming mode: return the delta stream once the provider accepted the request."""
        prompt = self.prepare_prompt(template_id, answers)
        logger.info("Generating document for template=%s (streaming)", template_id)
        return await self._client.open_stream(prompt)
