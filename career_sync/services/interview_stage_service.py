"""
Interview Stage Service

Stages are a child list of an application, ordered by scheduled date.
"""

from typing import Optional

from ..common.entities import (
    EntityId,
    InterviewStage,
    InterviewStagePatch,
    StageOutcome,
)
from ..common.namespaces import INTERVIEW_STAGES
from .mirrored_reader import MirroredReader, ReadResult
from .reconciler import MutationResult, ReconcilingMutation, RemoteCall


class InterviewStageService:
    """Reconciled edits to an application's interview stages."""

    def __init__(self, reconciler: ReconcilingMutation, reader: MirroredReader):
        self.reconciler = reconciler
        self.reader = reader

    async def add_stage(self, application_id: EntityId, stage: InterviewStage) -> MutationResult:
        record = stage.model_copy(update={"application_id": application_id}).to_record()
        return await self.reconciler.create(
            INTERVIEW_STAGES,
            application_id,
            record,
            remote=RemoteCall("POST", INTERVIEW_STAGES.collection_path(application_id), record),
        )

    async def update_stage(
        self,
        application_id: EntityId,
        stage_id: EntityId,
        patch: InterviewStagePatch,
    ) -> MutationResult:
        """
        Apply a partial update to one stage.

        An unknown stage_id adds the stage to the mirror, so an edit made
        before the list was first loaded is not lost.

        Raises:
            ValueError: If patch sets no fields
        """
        if patch.is_empty():
            raise ValueError("Interview stage patch sets no fields")
        fields = patch.to_fields()
        return await self.reconciler.upsert(
            INTERVIEW_STAGES,
            application_id,
            stage_id,
            fields,
            remote=RemoteCall(
                "PATCH", INTERVIEW_STAGES.item_path(application_id, stage_id), fields
            ),
            defaults={"applicationId": application_id},
        )

    async def record_outcome(
        self,
        application_id: EntityId,
        stage_id: EntityId,
        outcome: StageOutcome,
        feedback: Optional[str] = None,
    ) -> MutationResult:
        """Set a stage's outcome; terminal outcomes also stamp completedDate."""
        updates = {"outcome": outcome}
        if outcome.is_terminal:
            updates["completed_date"] = self.reconciler.clock()
        if feedback is not None:
            updates["feedback"] = feedback
        return await self.update_stage(application_id, stage_id, InterviewStagePatch(**updates))

    async def delete_stage(self, application_id: EntityId, stage_id: EntityId) -> MutationResult:
        return await self.reconciler.delete(
            INTERVIEW_STAGES,
            application_id,
            stage_id,
            remote=RemoteCall("DELETE", INTERVIEW_STAGES.item_path(application_id, stage_id)),
        )

    async def list_stages(self, application_id: EntityId) -> ReadResult:
        return await self.reader.fetch_list(INTERVIEW_STAGES, application_id)
