"""
Exception hierarchy for PaperFix services.

ValidationError   — missing/empty input, raised before any external call
GenerationError   — LLM provider failure, malformed or empty output
PersistenceError  — storage failure; never escapes DocumentRepository
ExportError       — PDF rendering or email provider failure
WorkflowStateError — message not accepted in the workflow's current phase
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class PaperFixError(Exception):
    """Base exception for all PaperFix service errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a dictionary for JSON responses."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(PaperFixError):
    """Raised when caller-supplied input is missing or empty."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details)
        self.field = field
        if field:
            self.details["field"] = field


class TemplateNotFoundError(ValidationError):
    """Raised when a template id does not resolve in the catalog."""

    def __init__(self, template_id: str) -> None:
        super().__init__(
            f"Template '{template_id}' not found",
            field="templateId",
            details={"template_id": template_id},
        )
        self.template_id = template_id


class GenerationError(PaperFixError):
    """Raised when the LLM provider fails or returns unusable content."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details)
        self.status_code = status_code
        if status_code is not None:
            self.details["provider_status"] = status_code


class PersistenceError(PaperFixError):
    """Raised inside the repository when a storage operation fails."""

    def __init__(self, operation: str, cause: Exception) -> None:
        super().__init__(
            f"{operation} failed: {cause}",
            {"operation": operation},
        )
        self.operation = operation
        self.cause = cause


class ExportError(PaperFixError):
    """Raised when rendering a PDF or dispatching an email fails."""


class WorkflowStateError(PaperFixError):
    """Raised when a workflow message arrives in a phase that cannot accept it."""

    def __init__(self, action: str, phase: str) -> None:
        super().__init__(
            f"Cannot {action} while the document is in phase '{phase}'",
            {"action": action, "phase": phase},
        )
        self.action = action
        self.phase = phase
