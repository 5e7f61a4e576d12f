# src/app/routers/aimock.py
"""
Stand-in for the external enrichment service.

Acknowledges at once and, after a fixed delay, posts a synthetic result
to the recipe callback receiver.
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from src.app.config import Settings, get_settings
from src.app.deps import get_enrichment_scheduler
from src.app.domain.errors import InvalidInputError
from src.app.domain.models import EnrichmentJob
from src.app.schemas.enrichment import StartEnrichmentRequest, StartEnrichmentResponse
from src.services.enrichment import EnrichmentScheduler

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/aimock", tags=["enrichment"])


@router.post("", response_model=StartEnrichmentResponse)
async def start_enrichment(
    body: StartEnrichmentRequest,
    settings: Settings = Depends(get_settings),
    scheduler: EnrichmentScheduler = Depends(get_enrichment_scheduler),
) -> StartEnrichmentResponse:
    if not isinstance(body.video_id, str) or not body.video_id:
        raise InvalidInputError("Invalid video_id", field="video_id")

    job = EnrichmentJob(
        recipe_id=body.recipe_id,
        video_id=body.video_id,
        delay_seconds=settings.ENRICHMENT_DELAY_SECONDS,
    )
    scheduler.schedule(job)
    logger.info("aimock.accepted job=%s recipe=%s video=%s", job.id, job.recipe_id, job.video_id)

    return StartEnrichmentResponse(
        message="Processing started",
        video_id=body.video_id,
        recipe_id=body.recipe_id,
    )
