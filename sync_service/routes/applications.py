"""
Application, Interview Stage and Follow-up API Routes.

Every write goes through the reconciling mutation:
- 200 with success=True when at least one channel accepted the change
  (degraded=True when only one did)
- 503 when neither the local mirror nor the remote API accepted it
- 422 when the remote rejected it and strict validation is enabled

Endpoints:
- GET    /api/applications
- PATCH  /api/applications/{application_id}
- PUT    /api/applications/{application_id}/status
- DELETE /api/applications/{application_id}
- GET    /api/applications/{application_id}/stages
- POST   /api/applications/{application_id}/stages
- PATCH  /api/applications/{application_id}/stages/{stage_id}
- POST   /api/applications/{application_id}/stages/{stage_id}/outcome
- DELETE /api/applications/{application_id}/stages/{stage_id}
- GET    /api/applications/{application_id}/followups
- POST   /api/applications/{application_id}/followups
- PATCH  /api/applications/{application_id}/followups/{followup_id}
- POST   /api/applications/{application_id}/followups/{followup_id}/complete
- POST   /api/applications/{application_id}/followups/{followup_id}/uncomplete
- DELETE /api/applications/{application_id}/followups/{followup_id}
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException

from career_sync.common.entities import (
    ApplicationPatch,
    FollowupAction,
    FollowupPatch,
    InterviewStage,
    InterviewStagePatch,
)
from career_sync.services.context import SyncContext

from ..models import ListResponse, MutationResponse, OutcomeRequest, StatusUpdateRequest
from .common import get_context, mutation_response, parse_body

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/applications", tags=["applications"])


def _require_fields(patch) -> None:
    if patch.is_empty():
        raise HTTPException(status_code=400, detail="Patch sets no fields")


# =============================================================================
# Applications
# =============================================================================


@router.get("", response_model=ListResponse)
async def list_applications(ctx: SyncContext = Depends(get_context)) -> ListResponse:
    return ListResponse.from_result(await ctx.applications.list_applications())


@router.patch("/{application_id}", response_model=MutationResponse)
async def update_application(
    application_id: str,
    body: Dict[str, Any] = Body(...),
    ctx: SyncContext = Depends(get_context),
) -> MutationResponse:
    patch = parse_body(ApplicationPatch, body)
    _require_fields(patch)
    result = await ctx.applications.update_application(application_id, patch)
    return mutation_response(result)


@router.put("/{application_id}/status", response_model=MutationResponse)
async def update_status(
    application_id: str,
    request: StatusUpdateRequest,
    ctx: SyncContext = Depends(get_context),
) -> MutationResponse:
    result = await ctx.applications.update_status(application_id, request.status)
    return mutation_response(result)


@router.delete("/{application_id}", response_model=MutationResponse)
async def delete_application(
    application_id: str, ctx: SyncContext = Depends(get_context)
) -> MutationResponse:
    return mutation_response(await ctx.applications.delete_application(application_id))


# =============================================================================
# Interview stages
# =============================================================================


@router.get("/{application_id}/stages", response_model=ListResponse)
async def list_stages(
    application_id: str, ctx: SyncContext = Depends(get_context)
) -> ListResponse:
    return ListResponse.from_result(await ctx.stages.list_stages(application_id))


@router.post("/{application_id}/stages", response_model=MutationResponse)
async def add_stage(
    application_id: str,
    body: Dict[str, Any] = Body(...),
    ctx: SyncContext = Depends(get_context),
) -> MutationResponse:
    stage = parse_body(InterviewStage, body, applicationId=application_id)
    return mutation_response(await ctx.stages.add_stage(application_id, stage))


@router.patch("/{application_id}/stages/{stage_id}", response_model=MutationResponse)
async def update_stage(
    application_id: str,
    stage_id: str,
    body: Dict[str, Any] = Body(...),
    ctx: SyncContext = Depends(get_context),
) -> MutationResponse:
    patch = parse_body(InterviewStagePatch, body)
    _require_fields(patch)
    return mutation_response(await ctx.stages.update_stage(application_id, stage_id, patch))


@router.post("/{application_id}/stages/{stage_id}/outcome", response_model=MutationResponse)
async def record_outcome(
    application_id: str,
    stage_id: str,
    request: OutcomeRequest,
    ctx: SyncContext = Depends(get_context),
) -> MutationResponse:
    result = await ctx.stages.record_outcome(
        application_id, stage_id, request.outcome, feedback=request.feedback
    )
    return mutation_response(result)


@router.delete("/{application_id}/stages/{stage_id}", response_model=MutationResponse)
async def delete_stage(
    application_id: str, stage_id: str, ctx: SyncContext = Depends(get_context)
) -> MutationResponse:
    return mutation_response(await ctx.stages.delete_stage(application_id, stage_id))


# =============================================================================
# Follow-ups
# =============================================================================


@router.get("/{application_id}/followups", response_model=ListResponse)
async def list_followups(
    application_id: str, ctx: SyncContext = Depends(get_context)
) -> ListResponse:
    return ListResponse.from_result(await ctx.followups.list_followups(application_id))


@router.post("/{application_id}/followups", response_model=MutationResponse)
async def add_followup(
    application_id: str,
    body: Dict[str, Any] = Body(...),
    ctx: SyncContext = Depends(get_context),
) -> MutationResponse:
    followup = parse_body(FollowupAction, body, applicationId=application_id)
    return mutation_response(await ctx.followups.add_followup(application_id, followup))


@router.patch("/{application_id}/followups/{followup_id}", response_model=MutationResponse)
async def update_followup(
    application_id: str,
    followup_id: str,
    body: Dict[str, Any] = Body(...),
    ctx: SyncContext = Depends(get_context),
) -> MutationResponse:
    patch = parse_body(FollowupPatch, body)
    _require_fields(patch)
    result = await ctx.followups.update_followup(application_id, followup_id, patch)
    return mutation_response(result)


@router.post(
    "/{application_id}/followups/{followup_id}/complete", response_model=MutationResponse
)
async def complete_followup(
    application_id: str, followup_id: str, ctx: SyncContext = Depends(get_context)
) -> MutationResponse:
    return mutation_response(await ctx.followups.complete(application_id, followup_id))


@router.post(
    "/{application_id}/followups/{followup_id}/uncomplete", response_model=MutationResponse
)
async def reopen_followup(
    application_id: str, followup_id: str, ctx: SyncContext = Depends(get_context)
) -> MutationResponse:
    return mutation_response(await ctx.followups.reopen(application_id, followup_id))


@router.delete("/{application_id}/followups/{followup_id}", response_model=MutationResponse)
async def delete_followup(
    application_id: str, followup_id: str, ctx: SyncContext = Depends(get_context)
) -> MutationResponse:
    return mutation_response(await ctx.followups.delete_followup(application_id, followup_id))
