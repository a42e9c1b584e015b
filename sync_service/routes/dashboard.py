"""
Dashboard API Routes.

- GET /api/dashboard/pending-followups
- GET /api/dashboard/upcoming-interviews
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from career_sync.common.error_handling import LocalStoreError
from career_sync.services.context import SyncContext

from ..models import PendingFollowupsResponse
from .common import get_context

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("/pending-followups", response_model=PendingFollowupsResponse)
async def pending_followups(ctx: SyncContext = Depends(get_context)) -> PendingFollowupsResponse:
    try:
        return PendingFollowupsResponse(count=ctx.dashboard.pending_followup_count())
    except LocalStoreError as e:
        logger.error(f"Pending follow-up count unavailable: {e}")
        raise HTTPException(status_code=503, detail="Local mirror unavailable")


@router.get("/upcoming-interviews")
async def upcoming_interviews(
    limit: Optional[int] = Query(default=None, ge=1, le=100),
    ctx: SyncContext = Depends(get_context),
) -> List[Dict[str, Any]]:
    try:
        return ctx.dashboard.upcoming_interviews(limit=limit)
    except LocalStoreError as e:
        logger.error(f"Upcoming interviews unavailable: {e}")
        raise HTTPException(status_code=503, detail="Local mirror unavailable")
