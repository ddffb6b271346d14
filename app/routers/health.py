"""
Health check endpoint.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text
from datetime import datetime
import logging

from app.config import settings
from app.database import get_db
from app.models.schemas import HealthCheckResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def _key_status(value: str) -> str:
    return "configured" if value else "missing"


@router.get("/", response_model=HealthCheckResponse)
async def health_check(db: AsyncSession = Depends(get_db)):
    """
    Health check endpoint to verify system status.

    Provider keys are only checked for presence; no calls are made to the
    LLM or email provider.

    Returns:
        HealthCheckResponse with status of database, LLM and email configuration
    """
    # Check database connection
    db_status = "ok"
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        db_status = "error"

    llm_status = _key_status(settings.GEMINI_API_KEY)
    email_status = _key_status(settings.RESEND_API_KEY)

    # Overall status
    overall_status = (
        "healthy"
        if db_status == "ok" and llm_status == "configured"
        else "degraded"
    )

    return HealthCheckResponse(
        status=overall_status,
        database=db_status,
        llm=llm_status,
        email=email_status,
        timestamp=datetime.utcnow()
    )
