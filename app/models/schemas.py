"""
Pydantic schemas for request/response validation.
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Dict
from datetime import datetime
from enum import Enum


class QuestionTypeSchema(str, Enum):
    """Input kinds a template question can be rendered with."""

    TEXT = "text"
    TEXTAREA = "textarea"
    SELECT = "select"
    RADIO = "radio"


# ---------------------------------------------------------------------------
# Template Schemas
# ---------------------------------------------------------------------------

class QuestionResponse(BaseModel):
    """A single questionnaire entry of a template."""

    id: str
    question: str
    type: QuestionTypeSchema
    options: List[str] = []
    placeholder: Optional[str] = None
    required: bool = False

    model_config = ConfigDict(from_attributes=True)


class TemplateSummary(BaseModel):
    """Template listing entry (no questions)."""

    id: str
    name: str
    description: str
    category: str

    model_config = ConfigDict(from_attributes=True)


class TemplateResponse(TemplateSummary):
    """Full template including its ordered questions."""

    questions: List[QuestionResponse]


# ---------------------------------------------------------------------------
# Generation / Edit Schemas
# ---------------------------------------------------------------------------

class GenerateRequest(BaseModel):
    """Body of POST /api/generate."""

    template_id: str = Field(..., alias="templateId", min_length=1)
    answers: Dict[str, str] = {}

    model_config = ConfigDict(populate_by_name=True)


class EditRequest(BaseModel):
    """Body of POST /api/edit.  Emptiness is checked by the edit service."""

    content: str = ""
    instruction: str = ""


class GenerateDocumentRequest(BaseModel):
    """Body of POST /api/generate-document (JSON-wrapped blocking generation)."""

    template_id: str = Field(..., alias="templateId", min_length=1)
    form_data: Dict[str, str] = Field(..., alias="formData")

    model_config = ConfigDict(populate_by_name=True)


class GenerateDocumentResponse(BaseModel):
    document: str


class UpdateDocumentRequest(BaseModel):
    """Body of POST /api/update-document (JSON-wrapped blocking edit)."""

    document: str = ""
    edit_request: str = Field("", alias="editRequest")

    model_config = ConfigDict(populate_by_name=True)


class UpdateDocumentResponse(BaseModel):
    updated_document: str = Field(..., serialization_alias="updatedDocument")


# ---------------------------------------------------------------------------
# Document Schemas
# ---------------------------------------------------------------------------

class DocumentCreateRequest(BaseModel):
    """Body for creating a finalized document or a draft."""

    title: str = Field(..., min_length=1, max_length=512)
    content: str
    template_id: str = Field(..., alias="templateId", min_length=1, max_length=100)
    answers: Dict[str, str] = {}

    model_config = ConfigDict(populate_by_name=True)


class DocumentProgressRequest(BaseModel):
    """Auto-save payload: content always, title only when provided."""

    content: str
    title: Optional[str] = Field(None, max_length=512)


class DocumentFinalizeRequest(BaseModel):
    """Optional new title applied while finalizing a draft."""

    title: Optional[str] = Field(None, max_length=512)


class DocumentUpdateRequest(BaseModel):
    """Generic partial update of a document's mutable fields."""

    title: Optional[str] = Field(None, min_length=1, max_length=512)
    content: Optional[str] = None


class DocumentResponse(BaseModel):
    """Schema for document details."""

    id: str
    user_id: str
    title: str
    content: str
    template_id: str
    template_answers: Dict[str, str] = {}
    is_draft: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DocumentProgressResponse(BaseModel):
    """Auto-save acknowledgement."""

    success: bool


# ---------------------------------------------------------------------------
# Export Schemas
# ---------------------------------------------------------------------------

class DownloadRequest(BaseModel):
    """Body of POST /api/download."""

    content: str = ""
    title: Optional[str] = None


class EmailRequest(BaseModel):
    """Body of POST /api/email."""

    email: str = ""
    content: str = ""
    title: Optional[str] = None


class EmailResponse(BaseModel):
    """Delivery acknowledgement from the email provider."""

    message: str = "Email sent successfully"
    message_id: Optional[str] = None


# ---------------------------------------------------------------------------
# User Schemas
# ---------------------------------------------------------------------------

class UserProfileRequest(BaseModel):
    """Profile fields pushed by the frontend after sign-in."""

    email: str = Field(..., min_length=3, max_length=255)
    name: Optional[str] = Field(None, max_length=255)
    avatar_url: Optional[str] = Field(None, max_length=1024)
    provider: Optional[str] = Field(None, max_length=50)


class UserProfileResponse(BaseModel):
    """Stored user profile."""

    id: str
    email: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    provider: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Health Schemas
# ---------------------------------------------------------------------------

class HealthCheckResponse(BaseModel):
    """Schema for health check response."""

    status: str
    database: str
    llm: str
    email: str
    timestamp: datetime
