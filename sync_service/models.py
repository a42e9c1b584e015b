"""
Request and response models for the sync service.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from career_sync.common.entities import ApplicationStatus, StageOutcome
from career_sync.services.mirrored_reader import ReadResult
from career_sync.services.reconciler import MutationResult


class MutationResponse(BaseModel):
    """Outcome of a reconciled write."""

    success: bool
    local_success: bool
    remote_success: Optional[bool] = None
    remote_error_kind: Optional[str] = None
    degraded: bool = False
    notified: bool = False
    record: Optional[Dict[str, Any]] = None
    errors: List[Dict[str, Any]] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: MutationResult) -> "MutationResponse":
        data = result.to_dict()
        data["degraded"] = result.degraded
        return cls(**data)


class ListResponse(BaseModel):
    """Records from a mirrored read."""

    records: List[Dict[str, Any]]
    source: str
    count: int
    errors: List[Dict[str, Any]] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: ReadResult) -> "ListResponse":
        return cls(
            records=result.records,
            source=result.source,
            count=len(result.records),
            errors=[e.to_dict() for e in result.errors],
        )


class StatusUpdateRequest(BaseModel):
    status: ApplicationStatus


class OutcomeRequest(BaseModel):
    outcome: StageOutcome
    feedback: Optional[str] = None


class NoteRequest(BaseModel):
    text: str = Field(..., min_length=1)


class PendingFollowupsResponse(BaseModel):
    count: int


class HealthResponse(BaseModel):
    status: str
    instance_id: str
    websocket_connections: int
    storage_listener: bool
