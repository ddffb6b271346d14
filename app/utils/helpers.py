"""
Common utility functions and helpers.
"""
from datetime import date
from typing import Optional
import re


def sanitize_filename(title: Optional[str], default: str = "document") -> str:
    """
    Derive a safe attachment/download base name from a document title.

    Every character outside ``[A-Za-z0-9]`` becomes an underscore; a missing
    or empty title falls back to *default*.

    Args:
        title: Document title, possibly None

    Returns:
        Filename without extension
    """
    if not title:
        return default
    return re.sub(r"[^a-zA-Z0-9]", "_", title)


def default_document_title(template_id: str, on: Optional[date] = None) -> str:
    """
    Title given to a freshly generated document before the user renames it.

    Args:
        template_id: Catalog id such as ``terms-of-service``
        on: Date to stamp (defaults to today)

    Returns:
        e.g. ``"terms of service - 10/18/2026"``
    """
    on = on or date.today()
    return f"{template_id.replace('-', ' ')} - {on.month}/{on.day}/{on.year}"


def truncate(text: str, limit: int = 80) -> str:
    """Shorten *text* for log lines."""
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def placeholder_email(user_id: str) -> str:
    """Unique stand-in address for a user whose real email is unknown or taken."""
    return f"{user_id}@paperfix.local"
