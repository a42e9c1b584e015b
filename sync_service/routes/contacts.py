"""
Networking Contact API Routes.

Contact edits, contact follow-ups and interactions are reconciled with
the remote API; notes are kept in the local mirror only.

Endpoints:
- PUT    /api/contacts/{contact_id}
- POST   /api/contacts/{contact_id}/schedule-followup
- GET    /api/contacts/{contact_id}/followups
- POST   /api/contacts/{contact_id}/followups/{followup_id}/complete
- POST   /api/contacts/{contact_id}/followups/{followup_id}/uncomplete
- DELETE /api/contacts/{contact_id}/followups/{followup_id}
- POST   /api/contacts/{contact_id}/log-interaction
- GET    /api/contacts/{contact_id}/interactions
- GET    /api/contacts/{contact_id}/notes
- POST   /api/contacts/{contact_id}/notes
- PUT    /api/contacts/{contact_id}/notes/{note_id}
- DELETE /api/contacts/{contact_id}/notes/{note_id}
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException

from career_sync.common.entities import ContactInteraction, ContactPatch, FollowupAction
from career_sync.services.context import SyncContext

from ..models import ListResponse, MutationResponse, NoteRequest
from .common import get_context, mutation_response, parse_body

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/contacts", tags=["contacts"])


@router.put("/{contact_id}", response_model=MutationResponse)
async def update_contact(
    contact_id: str,
    body: Dict[str, Any] = Body(...),
    ctx: SyncContext = Depends(get_context),
) -> MutationResponse:
    patch = parse_body(ContactPatch, body)
    if patch.is_empty():
        raise HTTPException(status_code=400, detail="Patch sets no fields")
    return mutation_response(await ctx.contacts.update_contact(contact_id, patch))


# =============================================================================
# Contact follow-ups
# =============================================================================


@router.post("/{contact_id}/schedule-followup", response_model=MutationResponse)
async def schedule_followup(
    contact_id: str,
    body: Dict[str, Any] = Body(...),
    ctx: SyncContext = Depends(get_context),
) -> MutationResponse:
    followup = parse_body(FollowupAction, body, contactId=contact_id)
    result = await ctx.followups.schedule_contact_followup(contact_id, followup)
    return mutation_response(result)


@router.get("/{contact_id}/followups", response_model=ListResponse)
async def list_contact_followups(
    contact_id: str, ctx: SyncContext = Depends(get_context)
) -> ListResponse:
    return ListResponse.from_result(await ctx.followups.list_contact_followups(contact_id))


@router.post("/{contact_id}/followups/{followup_id}/complete", response_model=MutationResponse)
async def complete_contact_followup(
    contact_id: str, followup_id: str, ctx: SyncContext = Depends(get_context)
) -> MutationResponse:
    result = await ctx.followups.set_contact_followup_completed(contact_id, followup_id, True)
    return mutation_response(result)


@router.post("/{contact_id}/followups/{followup_id}/uncomplete", response_model=MutationResponse)
async def reopen_contact_followup(
    contact_id: str, followup_id: str, ctx: SyncContext = Depends(get_context)
) -> MutationResponse:
    result = await ctx.followups.set_contact_followup_completed(contact_id, followup_id, False)
    return mutation_response(result)


@router.delete("/{contact_id}/followups/{followup_id}", response_model=MutationResponse)
async def delete_contact_followup(
    contact_id: str, followup_id: str, ctx: SyncContext = Depends(get_context)
) -> MutationResponse:
    result = await ctx.followups.delete_contact_followup(contact_id, followup_id)
    return mutation_response(result)


# =============================================================================
# Interactions
# =============================================================================


@router.post("/{contact_id}/log-interaction", response_model=MutationResponse)
async def log_interaction(
    contact_id: str,
    body: Dict[str, Any] = Body(...),
    ctx: SyncContext = Depends(get_context),
) -> MutationResponse:
    interaction = parse_body(ContactInteraction, body, contactId=contact_id)
    return mutation_response(await ctx.contacts.log_interaction(contact_id, interaction))


@router.get("/{contact_id}/interactions", response_model=ListResponse)
async def list_interactions(
    contact_id: str, ctx: SyncContext = Depends(get_context)
) -> ListResponse:
    return ListResponse.from_result(await ctx.contacts.list_interactions(contact_id))


# =============================================================================
# Notes (local only)
# =============================================================================


@router.get("/{contact_id}/notes", response_model=ListResponse)
async def list_notes(contact_id: str, ctx: SyncContext = Depends(get_context)) -> ListResponse:
    return ListResponse.from_result(await ctx.contacts.list_notes(contact_id))


@router.post("/{contact_id}/notes", response_model=MutationResponse)
async def add_note(
    contact_id: str, request: NoteRequest, ctx: SyncContext = Depends(get_context)
) -> MutationResponse:
    return mutation_response(await ctx.contacts.add_note(contact_id, request.text))


@router.put("/{contact_id}/notes/{note_id}", response_model=MutationResponse)
async def update_note(
    contact_id: str,
    note_id: str,
    request: NoteRequest,
    ctx: SyncContext = Depends(get_context),
) -> MutationResponse:
    return mutation_response(await ctx.contacts.update_note(contact_id, note_id, request.text))


@router.delete("/{contact_id}/notes/{note_id}", response_model=MutationResponse)
async def delete_note(
    contact_id: str, note_id: str, ctx: SyncContext = Depends(get_context)
) -> MutationResponse:
    return mutation_response(await ctx.contacts.delete_note(contact_id, note_id))
