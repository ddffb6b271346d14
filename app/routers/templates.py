"""
Template catalog endpoints.

GET /            — list templates (optionally by category), without questions.
GET /categories  — categories the catalog groups templates by.
GET /{id}        — one template with its ordered questionnaire.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query, status

from app.models.schemas import QuestionResponse, TemplateResponse, TemplateSummary
from app.services.template_catalog import (
    DOCUMENT_CATEGORIES,
    Template,
    get_template,
    list_templates,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _to_response(template: Template) -> TemplateResponse:
    return TemplateResponse(
        id=template.id,
        name=template.name,
        description=template.description,
        category=template.category,
        questions=[
            QuestionResponse(
                id=q.id,
                question=q.question,
                type=q.type.value,
                options=list(q.options),
                placeholder=q.placeholder,
                required=q.required,
            )
            for q in template.questions
        ],
    )


@router.get("", response_model=List[TemplateSummary])
async def get_templates(
    category: Optional[str] = Query(None, description="Category filter; 'all' lists everything"),
) -> List[TemplateSummary]:
    templates = list_templates(category)
    return [
        TemplateSummary(
            id=t.id,
            name=t.name,
            description=t.description,
            category=t.category,
        )
        for t in templates
    ]


@router.get("/categories", response_model=List[Dict[str, str]])
async def get_categories() -> List[Dict[str, str]]:
    return DOCUMENT_CATEGORIES


@router.get("/{template_id}", response_model=TemplateResponse)
async def get_template_detail(template_id: str) -> TemplateResponse:
    """Return a template and its questions.  404 for unknown ids."""
    template = get_template(template_id)
    if template is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Template '{template_id}' not found.",
        )
    return _to_response(template)
