"""
Entity and patch types for mirrored career data.

Records travel as camelCase JSON (the REST API and local mirror format);
Python code uses snake_case attributes. Each entity has a matching patch
model that forbids unknown fields, so a partial update can only touch
fields that belong to the entity.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

EntityId = Union[int, str]


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def new_client_id() -> str:
    """Client-generated id for records created while offline."""
    return uuid.uuid4().hex


# =============================================================================
# Enums
# =============================================================================


class ApplicationStatus(str, Enum):
    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    APPLIED = "Applied"
    INTERVIEWING = "Interviewing"
    OFFER = "Offer"
    REJECTED = "Rejected"


class InterviewStageType(str, Enum):
    PHONE_SCREEN = "phone_screen"
    TECHNICAL = "technical"
    BEHAVIORAL = "behavioral"
    ONSITE = "onsite"
    PANEL = "panel"
    FINAL = "final"


class StageOutcome(str, Enum):
    PENDING = "pending"
    SCHEDULED = "scheduled"
    PASSED = "passed"
    FAILED = "failed"
    NOT_SELECTED = "not_selected"

    @property
    def is_terminal(self) -> bool:
        return self in (StageOutcome.PASSED, StageOutcome.FAILED, StageOutcome.NOT_SELECTED)


class FollowupType(str, Enum):
    THANK_YOU_EMAIL = "thank_you_email"
    FOLLOW_UP = "follow_up"
    PREPARATION = "preparation"
    DOCUMENT_SUBMISSION = "document_submission"
    NETWORKING = "networking"
    OTHER = "other"


class RelationshipType(str, Enum):
    CURRENT_COLLEAGUE = "Current Colleague"
    FORMER_COLLEAGUE = "Former Colleague"
    INDUSTRY_EXPERT = "Industry Expert"
    MENTOR = "Mentor"
    RECRUITER = "Recruiter"
    HIRING_MANAGER = "Hiring Manager"
    FRIEND = "Friend"
    OTHER = "Other"


class InteractionType(str, Enum):
    CALL = "Call"
    EMAIL = "Email"
    MEETING = "Meeting"
    VIDEO_CALL = "Video Call"
    COFFEE_CHAT = "Coffee Chat"
    OTHER = "Other"


# =============================================================================
# Base models
# =============================================================================


class Record(BaseModel):
    """Base for mirrored entities. Unknown wire fields are kept, not dropped."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    def to_record(self) -> Dict[str, Any]:
        """JSON-safe camelCase dict for the mirror and the wire."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Patch(BaseModel):
    """
    Base for partial updates.

    Only fields the caller explicitly set are emitted; an explicit None
    clears the field.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    def to_fields(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)

    def is_empty(self) -> bool:
        return not self.model_fields_set


# =============================================================================
# Entities
# =============================================================================


class Application(Record):
    id: EntityId = Field(default_factory=new_client_id)
    job_title: str
    company: str
    status: ApplicationStatus = ApplicationStatus.NOT_STARTED
    notes: Optional[str] = None
    description: Optional[str] = None
    resume_id: Optional[EntityId] = None
    cover_letter_id: Optional[EntityId] = None
    created_at: str = Field(default_factory=utc_now_iso)
    updated_at: str = Field(default_factory=utc_now_iso)


class InterviewStage(Record):
    id: EntityId = Field(default_factory=new_client_id)
    application_id: EntityId
    type: InterviewStageType = InterviewStageType.PHONE_SCREEN
    scheduled_date: Optional[datetime] = None
    completed_date: Optional[datetime] = None
    location: Optional[str] = None
    interviewers: List[str] = Field(default_factory=list)
    outcome: Optional[StageOutcome] = StageOutcome.PENDING
    notes: Optional[str] = None
    feedback: Optional[str] = None
    next_steps: Optional[str] = None
    created_at: str = Field(default_factory=utc_now_iso)
    updated_at: str = Field(default_factory=utc_now_iso)


class FollowupAction(Record):
    id: EntityId = Field(default_factory=new_client_id)
    application_id: Optional[EntityId] = None
    contact_id: Optional[EntityId] = None
    type: FollowupType = FollowupType.FOLLOW_UP
    description: str = ""
    due_date: Optional[datetime] = None
    completed: bool = False
    completed_date: Optional[datetime] = None
    notes: Optional[str] = None
    created_at: str = Field(default_factory=utc_now_iso)
    updated_at: str = Field(default_factory=utc_now_iso)


class NetworkingContact(Record):
    id: EntityId = Field(default_factory=new_client_id)
    name: str
    company: Optional[str] = None
    job_title: Optional[str] = None
    relationship_type: RelationshipType = RelationshipType.OTHER
    email: Optional[str] = None
    phone: Optional[str] = None
    linkedin_url: Optional[str] = None
    last_contacted_date: Optional[datetime] = None
    notes: Optional[str] = None


class ContactNote(Record):
    """Free-form note kept only in the local mirror."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    contact_id: EntityId
    text: str = Field(..., min_length=1)
    timestamp: str = Field(default_factory=utc_now_iso)


class ContactInteraction(Record):
    id: EntityId = Field(default_factory=new_client_id)
    contact_id: EntityId
    interaction_type: InteractionType
    date: datetime
    notes: Optional[str] = None


# =============================================================================
# Patches
# =============================================================================


class ApplicationPatch(Patch):
    job_title: Optional[str] = None
    company: Optional[str] = None
    status: Optional[ApplicationStatus] = None
    notes: Optional[str] = None
    description: Optional[str] = None
    resume_id: Optional[EntityId] = None
    cover_letter_id: Optional[EntityId] = None


class InterviewStagePatch(Patch):
    type: Optional[InterviewStageType] = None
    scheduled_date: Optional[datetime] = None
    completed_date: Optional[datetime] = None
    location: Optional[str] = None
    interviewers: Optional[List[str]] = None
    outcome: Optional[StageOutcome] = None
    notes: Optional[str] = None
    feedback: Optional[str] = None
    next_steps: Optional[str] = None


class FollowupPatch(Patch):
    type: Optional[FollowupType] = None
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    completed: Optional[bool] = None
    completed_date: Optional[datetime] = None
    notes: Optional[str] = None


class ContactPatch(Patch):
    name: Optional[str] = None
    company: Optional[str] = None
    job_title: Optional[str] = None
    relationship_type: Optional[RelationshipType] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    linkedin_url: Optional[str] = None
    last_contacted_date: Optional[datetime] = None
    notes: Optional[str] = None


class ContactNotePatch(Patch):
    text: str = Field(..., min_length=1)
