"""Database and schema models for PaperFix."""
from app.models.database_models import (
    User,
    Document,
)
from app.models.schemas import (
    TemplateSummary,
    TemplateResponse,
    GenerateRequest,
    EditRequest,
    DocumentCreateRequest,
    DocumentResponse,
    DownloadRequest,
    EmailRequest,
    EmailResponse,
    UserProfileResponse,
    HealthCheckResponse,
)

__all__ = [
    # Database models
    "User",
    "Document",
    # Pydantic schemas
    "TemplateSummary",
    "TemplateResponse",
    "GenerateRequest",
    "EditRequest",
    "DocumentCreateRequest",
    "DocumentResponse",
    "DownloadRequest",
    "EmailRequest",
    "EmailResponse",
    "UserProfileResponse",
    "HealthCheckResponse",
]
