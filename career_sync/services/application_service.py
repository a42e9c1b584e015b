"""
Application Service

Edits job applications through the reconciling mutation. Deleting an
application also clears the mirrors of its interview stages and
follow-ups.
"""

import logging
from typing import Any, Dict, Optional

from ..common.entities import ApplicationPatch, ApplicationStatus, EntityId
from ..common.error_handling import LocalStoreError
from ..common.merge import find_index
from ..common.namespaces import APPLICATIONS, FOLLOWUPS, INTERVIEW_STAGES
from .mirrored_reader import MirroredReader, ReadResult
from .reconciler import MutationResult, ReconcilingMutation, RemoteCall

logger = logging.getLogger(__name__)


class ApplicationService:
    """Reconciled edits to job applications."""

    def __init__(self, reconciler: ReconcilingMutation, reader: MirroredReader):
        self.reconciler = reconciler
        self.reader = reader

    async def update_status(
        self, application_id: EntityId, status: ApplicationStatus
    ) -> MutationResult:
        """Move an application to a new status."""
        return await self.update_application(application_id, ApplicationPatch(status=status))

    async def update_application(
        self, application_id: EntityId, patch: ApplicationPatch
    ) -> MutationResult:
        """
        Apply a partial update.

        Raises:
            ValueError: If patch sets no fields
        """
        if patch.is_empty():
            raise ValueError("Application patch sets no fields")
        fields = patch.to_fields()
        return await self.reconciler.upsert(
            APPLICATIONS,
            None,
            application_id,
            fields,
            remote=RemoteCall("PATCH", APPLICATIONS.item_path(None, application_id), fields),
        )

    async def delete_application(self, application_id: EntityId) -> MutationResult:
        """Delete an application and clear its stage and follow-up mirrors."""
        result = await self.reconciler.delete(
            APPLICATIONS,
            None,
            application_id,
            remote=RemoteCall("DELETE", APPLICATIONS.item_path(None, application_id)),
            extra_keys=(
                INTERVIEW_STAGES.list_key(application_id),
                FOLLOWUPS.list_key(application_id),
            ),
        )
        if result.success:
            for namespace in (INTERVIEW_STAGES, FOLLOWUPS):
                key = namespace.storage_key(application_id)
                try:
                    self.reconciler.store.delete(key)
                except LocalStoreError as e:
                    logger.warning(f"Could not clear '{key}' for deleted application: {e}")
        return result

    async def list_applications(self) -> ReadResult:
        return await self.reader.fetch_list(APPLICATIONS)

    def get_cached(self, application_id: EntityId) -> Optional[Dict[str, Any]]:
        """Application from the local mirror only, or None."""
        records = self.reconciler.store.read_list(APPLICATIONS.storage_key())
        index = find_index(records, application_id)
        return records[index] if index >= 0 else None
