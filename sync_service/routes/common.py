"""
Shared helpers for route modules.
"""

import logging
from typing import Any, Dict, Type, TypeVar

from fastapi import HTTPException, Request
from pydantic import BaseModel, ValidationError

from career_sync.common.error_handling import ErrorKind
from career_sync.services.context import SyncContext
from career_sync.services.reconciler import MutationResult

from ..models import MutationResponse

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def get_context(request: Request) -> SyncContext:
    """FastAPI dependency returning the application's SyncContext."""
    context = getattr(request.app.state, "sync_context", None)
    if context is None:
        raise HTTPException(status_code=503, detail="Sync context not initialized")
    return context


def parse_body(model: Type[ModelT], body: Dict[str, Any], **owner: Any) -> ModelT:
    """
    Validate a JSON body into model, forcing owner fields from the path.

    Raises:
        HTTPException: 422 with pydantic's error list
    """
    try:
        return model.model_validate({**body, **owner})
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False))


def mutation_response(result: MutationResult) -> MutationResponse:
    """
    Map a MutationResult to a response.

    Raises:
        HTTPException: 422 when the remote rejected the change in strict
            mode, 503 when neither channel accepted it
    """
    if result.success:
        return MutationResponse.from_result(result)

    body = MutationResponse.from_result(result).model_dump()
    if result.remote_error_kind == ErrorKind.VALIDATION and not result.local_success:
        raise HTTPException(status_code=422, detail=body)
    raise HTTPException(status_code=503, detail=body)
