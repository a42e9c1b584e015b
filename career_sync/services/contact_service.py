"""
Contact Service

Networking contacts, their logged interactions, and free-form notes.

Notes exist only in the local mirror (newest first). Contacts created
before notes existed carry a single ``notes`` string; the first time such
a contact's notes are listed, that string becomes the first note.
"""

import logging
from typing import Optional

from ..common.entities import (
    ContactInteraction,
    ContactNote,
    ContactNotePatch,
    ContactPatch,
    EntityId,
)
from ..common.error_handling import LocalStoreError
from ..common.merge import find_index
from ..common.namespaces import CONTACT_INTERACTIONS, CONTACT_NOTES, CONTACTS
from .mirrored_reader import MirroredReader, ReadResult
from .reconciler import MutationResult, ReconcilingMutation, RemoteCall

logger = logging.getLogger(__name__)


class ContactService:
    """Reconciled edits to contacts, interactions and notes."""

    def __init__(self, reconciler: ReconcilingMutation, reader: MirroredReader):
        self.reconciler = reconciler
        self.reader = reader

    # ===== Contacts =====

    async def update_contact(self, contact_id: EntityId, patch: ContactPatch) -> MutationResult:
        if patch.is_empty():
            raise ValueError("Contact patch sets no fields")
        fields = patch.to_fields()
        return await self.reconciler.upsert(
            CONTACTS,
            None,
            contact_id,
            fields,
            remote=RemoteCall("PUT", CONTACTS.item_path(None, contact_id), fields),
        )

    # ===== Interactions =====

    async def log_interaction(
        self, contact_id: EntityId, interaction: ContactInteraction
    ) -> MutationResult:
        """
        Record an interaction.

        The server also moves the contact's lastContactedDate, so the
        contact's detail and list views are invalidated too.
        """
        record = interaction.model_copy(update={"contact_id": contact_id}).to_record()
        return await self.reconciler.create(
            CONTACT_INTERACTIONS,
            contact_id,
            record,
            remote=RemoteCall("POST", f"/api/contacts/{contact_id}/log-interaction", record),
            prepend=True,
            extra_keys=(CONTACTS.list_key(),),
        )

    async def list_interactions(self, contact_id: EntityId) -> ReadResult:
        return await self.reader.fetch_list(CONTACT_INTERACTIONS, contact_id)

    # ===== Notes (local only) =====

    async def add_note(self, contact_id: EntityId, text: str) -> MutationResult:
        note = ContactNote(contact_id=contact_id, text=text)
        return await self.reconciler.create(
            CONTACT_NOTES, contact_id, note.to_record(), prepend=True
        )

    async def update_note(self, contact_id: EntityId, note_id: str, text: str) -> MutationResult:
        fields = ContactNotePatch(text=text).to_fields()
        fields["timestamp"] = self.reconciler.clock()
        return await self.reconciler.upsert(
            CONTACT_NOTES,
            contact_id,
            note_id,
            fields,
            defaults={"contactId": contact_id},
            touch=False,
        )

    async def delete_note(self, contact_id: EntityId, note_id: str) -> MutationResult:
        return await self.reconciler.delete(CONTACT_NOTES, contact_id, note_id)

    async def list_notes(
        self, contact_id: EntityId, legacy_notes: Optional[str] = None
    ) -> ReadResult:
        """
        Notes for a contact, newest first.

        Args:
            contact_id: Owning contact
            legacy_notes: The contact's old single-string notes; looked up
                in the contacts mirror when not given
        """
        result = await self.reader.fetch_list(CONTACT_NOTES, contact_id)
        if result.records or not result.ok:
            return result

        if legacy_notes is None:
            legacy_notes = self._legacy_notes(contact_id)
        if not legacy_notes or not legacy_notes.strip():
            return result

        logger.info(f"Migrating legacy notes of contact {contact_id} into the notes list")
        migrated = await self.add_note(contact_id, legacy_notes.strip())
        if not migrated.success:
            return result
        return await self.reader.fetch_list(CONTACT_NOTES, contact_id)

    def _legacy_notes(self, contact_id: EntityId) -> Optional[str]:
        try:
            contacts = self.reconciler.store.read_list(CONTACTS.storage_key())
        except LocalStoreError as e:
            logger.warning(f"Could not read contacts mirror for legacy notes: {e}")
            return None
        index = find_index(contacts, contact_id)
        if index < 0:
            return None
        notes = contacts[index].get("notes")
        return notes if isinstance(notes, str) else None
