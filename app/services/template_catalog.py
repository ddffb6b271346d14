"""
Static catalog of document templates and their questionnaires.

Pure data plus lookup helpers; the catalog is built at import time and never
mutated.
"""
from __future__ import annotations

import dataclasses
import enum
from typing import Dict, List, Optional, Tuple


class QuestionType(str, enum.Enum):
    TEXT = "text"
    TEXTAREA = "textarea"
    SELECT = "select"
    RADIO = "radio"


@dataclasses.dataclass(frozen=True)
class Question:
    id: str
    question: str
    type: QuestionType
    options: Tuple[str, ...] = ()
    placeholder: Optional[str] = None
    required: bool = False


@dataclasses.dataclass(frozen=True)
class Template:
    id: str
    name: str
    description: str
    questions: Tuple[Question, ...]
    category: str = "miscellaneous"


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------

DOCUMENT_CATEGORIES: List[Dict[str, str]] = [
    {"id": "all", "name": "All"},
    {"id": "business", "name": "Business Documents"},
    {"id": "legal", "name": "Legal Documents"},
    {"id": "real-estate", "name": "Real Estate Documents"},
    {"id": "personal", "name": "Personal Documents"},
    {"id": "employment", "name": "Employment & HR"},
    {"id": "technology", "name": "Technology & Startup"},
    {"id": "creative", "name": "Creative & Media"},
    {"id": "financial", "name": "Financial Documents"},
    {"id": "educational", "name": "Educational & Nonprofit"},
    {"id": "miscellaneous", "name": "Miscellaneous"},
]


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

_COMPANY_NAME = Question(
    id="companyName",
    question="What is your company's legal name?",
    type=QuestionType.TEXT,
    placeholder="e.g., Acme Corporation",
    required=True,
)

_TEMPLATES: Tuple[Template, ...] = (
    Template(
        id="terms-of-service",
        name="Terms of Service",
        description=(
            "Generate a comprehensive Terms of Service agreement for your "
            "website or application"
        ),
        category="legal",
        questions=(
            _COMPANY_NAME,
            Question(
                id="serviceType",
                question="What type of service do you provide?",
                type=QuestionType.SELECT,
                options=(
                    "Web Application",
                    "Mobile App",
                    "SaaS Platform",
                    "E-commerce Store",
                    "Content Platform",
                    "Other",
                ),
                required=True,
            ),
            Question(
                id="jurisdiction",
                question="Which country's laws govern this agreement?",
                type=QuestionType.TEXT,
                placeholder="e.g., United States",
                required=True,
            ),
            Question(
                id="userDataCollection",
                question="Do you collect user data?",
                type=QuestionType.RADIO,
                options=("Yes", "No"),
                required=True,
            ),
            Question(
                id="additionalTerms",
                question=(
                    "Are there any additional terms or specific requirements "
                    "you'd like to include?"
                ),
                type=QuestionType.TEXTAREA,
                placeholder="Enter any additional terms or requirements...",
            ),
        ),
    ),
    Template(
        id="privacy-policy",
        name="Privacy Policy",
        description=(
            "Create a detailed Privacy Policy that complies with global "
            "privacy regulations"
        ),
        category="legal",
        questions=(
            _COMPANY_NAME,
            Question(
                id="dataCollectionPurpose",
                question="What is the primary purpose of collecting user data?",
                type=QuestionType.TEXTAREA,
                placeholder="Explain why you collect user data...",
                required=True,
            ),
            Question(
                id="dataTypes",
                question="What types of personal data do you collect?",
                type=QuestionType.SELECT,
                options=(
                    "Contact Information",
                    "Payment Details",
                    "Usage Data",
                    "Device Information",
                    "Location Data",
                    "All of the above",
                ),
                required=True,
            ),
            Question(
                id="thirdPartySharing",
                question="Do you share user data with third parties?",
                type=QuestionType.RADIO,
                options=("Yes", "No"),
                required=True,
            ),
            Question(
                id="userRights",
                question="What rights do users have regarding their data?",
                type=QuestionType.TEXTAREA,
                placeholder="Describe user rights and how they can exercise them...",
                required=True,
            ),
        ),
    ),
    Template(
        id="nda",
        name="Non-Disclosure Agreement",
        description=(
            "Protect confidential information shared with partners, "
            "contractors, or employees"
        ),
        category="business",
        questions=(
            _COMPANY_NAME,
            Question(
                id="recipientName",
                question="Who will receive the confidential information?",
                type=QuestionType.TEXT,
                placeholder="e.g., Jane Doe or Globex LLC",
                required=True,
            ),
            Question(
                id="purpose",
                question="Why is the confidential information being shared?",
                type=QuestionType.TEXTAREA,
                placeholder="e.g., Evaluating a potential partnership...",
                required=True,
            ),
            Question(
                id="mutual",
                question="Should the agreement be mutual?",
                type=QuestionType.RADIO,
                options=("Mutual", "One-way"),
                required=True,
            ),
            Question(
                id="duration",
                question="How long should confidentiality obligations last?",
                type=QuestionType.SELECT,
                options=("1 year", "2 years", "3 years", "5 years", "Indefinitely"),
                required=True,
            ),
            Question(
                id="jurisdiction",
                question="Which jurisdiction's laws govern this agreement?",
                type=QuestionType.TEXT,
                placeholder="e.g., State of Delaware",
            ),
        ),
    ),
)

TEMPLATES: Dict[str, Template] = {template.id: template for template in _TEMPLATES}


# ---------------------------------------------------------------------------
# Lookup helpers
# ---------------------------------------------------------------------------

def get_template(template_id: str) -> Optional[Template]:
    return TEMPLATES.get(template_id)


def list_templates(category: Optional[str] = None) -> List[Template]:
    """All templates in catalog order, optionally restricted to one category."""
    if category is None or category == "all":
        return list(TEMPLATES.values())
    return [t for t in TEMPLATES.values() if t.category == category]


def get_template_category(template_id: str) -> str:
    template = TEMPLATES.get(template_id)
    return template.category if template else "miscellaneous"
