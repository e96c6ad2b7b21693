import logging
from typing import Literal

from fastapi import APIRouter
from pydantic import BaseModel
from sqlalchemy import select

from siteledger.config import get_settings
from siteledger.db import SessionDep
from siteledger.models.ledger import Ledger
from siteledger.services.cache import get_report_cache
from siteledger.services.registry import REGISTRY

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: Literal["ok", "degraded", "error"]
    version: str
    environment: str
    report_cache: str
    entity_types: list[str]


@router.get("/health", response_model=HealthResponse)
async def health(session: SessionDep) -> HealthResponse:
    """Return the health status of the API service, its ledger store and the approval registry."""
    settings = get_settings()
    status: Literal["ok", "degraded", "error"] = "ok"

    try:
        await session.execute(select(Ledger.id).limit(1))
    except Exception:
        logger.exception("Health check: ledger store unreachable")
        status = "degraded"

    return HealthResponse(
        status=status,
        version=settings.app_version,
        environment=settings.environment,
        report_cache=type(get_report_cache()).__name__,
        entity_types=sorted(entity_type.value for entity_type in REGISTRY),
    )
