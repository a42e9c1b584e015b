"""
Services module for reconciled editing of career data.

Each editor-facing service drives the shared ReconcilingMutation so every
change is written to the local mirror and the remote API, then announced
on the invalidation bus.
"""

from career_sync.services.reconciler import MutationResult, ReconcilingMutation, RemoteCall
from career_sync.services.invalidation import InvalidationBus, InvalidationEvent
from career_sync.services.query_cache import QueryCache
from career_sync.services.mirrored_reader import MirroredReader, ReadResult
from career_sync.services.application_service import ApplicationService
from career_sync.services.interview_stage_service import InterviewStageService
from career_sync.services.followup_service import FollowupService
from career_sync.services.contact_service import ContactService
from career_sync.services.dashboard_service import DashboardService
from career_sync.services.context import SyncContext, build_sync_context

__all__ = [
    # Core
    "MutationResult",
    "ReconcilingMutation",
    "RemoteCall",
    "InvalidationBus",
    "InvalidationEvent",
    "QueryCache",
    "MirroredReader",
    "ReadResult",
    # Services
    "ApplicationService",
    "InterviewStageService",
    "FollowupService",
    "ContactService",
    "DashboardService",
    # Wiring
    "SyncContext",
    "build_sync_context",
]
