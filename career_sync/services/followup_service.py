"""
Follow-up Service

Follow-up actions live under either an application or a networking
contact. Both lists are ordered by due date and feed the pending
follow-up count on the dashboard.
"""

from ..common.entities import EntityId, FollowupAction, FollowupPatch
from ..common.namespaces import CONTACT_FOLLOWUPS, FOLLOWUPS, KeyNamespace
from .mirrored_reader import MirroredReader, ReadResult
from .reconciler import MutationResult, ReconcilingMutation, RemoteCall


def _completion_path(namespace: KeyNamespace, parent_id: EntityId, followup_id: EntityId,
                     completed: bool) -> str:
    action = "complete" if completed else "uncomplete"
    return f"{namespace.item_path(parent_id, followup_id)}/{action}"


class FollowupService:
    """Reconciled edits to application and contact follow-ups."""

    def __init__(self, reconciler: ReconcilingMutation, reader: MirroredReader):
        self.reconciler = reconciler
        self.reader = reader

    # ===== Application follow-ups =====

    async def add_followup(
        self, application_id: EntityId, followup: FollowupAction
    ) -> MutationResult:
        record = followup.model_copy(update={"application_id": application_id}).to_record()
        return await self.reconciler.create(
            FOLLOWUPS,
            application_id,
            record,
            remote=RemoteCall("POST", FOLLOWUPS.collection_path(application_id), record),
        )

    async def update_followup(
        self,
        application_id: EntityId,
        followup_id: EntityId,
        patch: FollowupPatch,
    ) -> MutationResult:
        if patch.is_empty():
            raise ValueError("Follow-up patch sets no fields")
        fields = patch.to_fields()
        return await self.reconciler.upsert(
            FOLLOWUPS,
            application_id,
            followup_id,
            fields,
            remote=RemoteCall("PATCH", FOLLOWUPS.item_path(application_id, followup_id), fields),
            defaults={"applicationId": application_id},
        )

    async def set_completed(
        self, application_id: EntityId, followup_id: EntityId, completed: bool
    ) -> MutationResult:
        """
        Mark a follow-up done or not done.

        completedDate is stamped when completing and cleared when reopening.
        The remote side is a POST to .../complete or .../uncomplete.
        """
        return await self._set_completed(FOLLOWUPS, application_id, followup_id, completed)

    async def complete(self, application_id: EntityId, followup_id: EntityId) -> MutationResult:
        return await self.set_completed(application_id, followup_id, True)

    async def reopen(self, application_id: EntityId, followup_id: EntityId) -> MutationResult:
        return await self.set_completed(application_id, followup_id, False)

    async def delete_followup(
        self, application_id: EntityId, followup_id: EntityId
    ) -> MutationResult:
        return await self.reconciler.delete(
            FOLLOWUPS,
            application_id,
            followup_id,
            remote=RemoteCall("DELETE", FOLLOWUPS.item_path(application_id, followup_id)),
        )

    async def list_followups(self, application_id: EntityId) -> ReadResult:
        return await self.reader.fetch_list(FOLLOWUPS, application_id)

    # ===== Contact follow-ups =====

    async def schedule_contact_followup(
        self, contact_id: EntityId, followup: FollowupAction
    ) -> MutationResult:
        record = followup.model_copy(update={"contact_id": contact_id}).to_record()
        return await self.reconciler.create(
            CONTACT_FOLLOWUPS,
            contact_id,
            record,
            remote=RemoteCall("POST", f"/api/contacts/{contact_id}/schedule-followup", record),
        )

    async def set_contact_followup_completed(
        self, contact_id: EntityId, followup_id: EntityId, completed: bool
    ) -> MutationResult:
        return await self._set_completed(CONTACT_FOLLOWUPS, contact_id, followup_id, completed)

    async def delete_contact_followup(
        self, contact_id: EntityId, followup_id: EntityId
    ) -> MutationResult:
        return await self.reconciler.delete(
            CONTACT_FOLLOWUPS,
            contact_id,
            followup_id,
            remote=RemoteCall("DELETE", CONTACT_FOLLOWUPS.item_path(contact_id, followup_id)),
        )

    async def list_contact_followups(self, contact_id: EntityId) -> ReadResult:
        return await self.reader.fetch_list(CONTACT_FOLLOWUPS, contact_id)

    # ===== Helpers =====

    async def _set_completed(
        self,
        namespace: KeyNamespace,
        parent_id: EntityId,
        followup_id: EntityId,
        completed: bool,
    ) -> MutationResult:
        patch = FollowupPatch(
            completed=completed,
            completed_date=self.reconciler.clock() if completed else None,
        )
        owner_field = "contactId" if namespace is CONTACT_FOLLOWUPS else "applicationId"
        return await self.reconciler.upsert(
            namespace,
            parent_id,
            followup_id,
            patch,
            remote=RemoteCall(
                "POST", _completion_path(namespace, parent_id, followup_id, completed)
            ),
            defaults={owner_field: parent_id},
        )
