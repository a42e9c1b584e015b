"""
Reconciling Mutation

Applies one change to both the local mirror and the remote API:

1. Read the mirror list for the namespace key
2. Merge the patch into the matching record (or add a new one)
3. Write the list back (a failure is logged, not raised)
4. Attempt the remote call (a failure is logged, not raised)
5. Publish invalidation for the detail, list and aggregate keys
6. Succeed when at least one side succeeded

The local mirror is the degraded source of truth whenever the remote API
is unreachable; it is never rolled back except in strict validation mode.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from ..common.entities import EntityId, Patch, new_client_id, utc_now_iso
from ..common.error_handling import (
    ErrorCollector,
    ErrorKind,
    LocalStoreError,
    RemoteApiError,
    SyncError,
    log_level_for,
)
from ..common.logger import MutationLogger, mutation_logger
from ..common.merge import find_index, merge_record, sort_by_date
from ..common.namespaces import KeyNamespace, QueryKey
from ..common.remote_api import RemoteApiClient, RemoteResponse
from ..common.stores.base import LocalStoreInterface
from .invalidation import InvalidationBus

logger = logging.getLogger(__name__)

PatchLike = Union[Patch, Dict[str, Any]]


@dataclass
class RemoteCall:
    """The remote half of a mutation."""
    method: str
    path: str
    body: Optional[Dict[str, Any]] = None


@dataclass
class MutationResult:
    """
    Outcome of a reconciling mutation.

    Attributes:
        success: True when at least one channel succeeded
        local_success: Mirror write outcome
        remote_success: Remote outcome, None when no remote call was made
        remote_error_kind: Kind of the final remote failure, if any
        errors: Every channel failure, in order
        record: The record as written to the mirror, or the server copy
            when the mirror was unreadable (None for deletes or when
            neither is available)
        notified: Whether the invalidation signal fired
        remote_data: Parsed body of a successful remote response
    """
    success: bool
    local_success: bool
    remote_success: Optional[bool] = None
    remote_error_kind: Optional[ErrorKind] = None
    errors: List[SyncError] = field(default_factory=list)
    record: Optional[Dict[str, Any]] = None
    notified: bool = False
    remote_data: Any = None

    @property
    def degraded(self) -> bool:
        """Succeeded, but only one channel accepted the change."""
        return self.success and not (self.local_success and self.remote_success is not False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "local_success": self.local_success,
            "remote_success": self.remote_success,
            "remote_error_kind": self.remote_error_kind.value if self.remote_error_kind else None,
            "errors": [e.to_dict() for e in self.errors],
            "record": self.record,
            "notified": self.notified,
        }


def _patch_fields(patch: PatchLike) -> Dict[str, Any]:
    if isinstance(patch, Patch):
        return patch.to_fields()
    return dict(patch)


def _is_transient(exception: BaseException) -> bool:
    return isinstance(exception, RemoteApiError) and exception.is_transient


class ReconcilingMutation:
    """
    Dual-write executor shared by every editor-facing service.

    Policy:
        retry_attempts: Remote attempts for transient failures (1 = no retry)
        swallow_validation_errors: When False, a remote 4xx fails the
            mutation and restores the changed record to its previous version
        notify_on_total_failure: Publish invalidation even when both
            channels failed
    """

    def __init__(
        self,
        store: LocalStoreInterface,
        remote: RemoteApiClient,
        bus: InvalidationBus,
        retry_attempts: int = 1,
        retry_max_wait: float = 4.0,
        retry_multiplier: float = 0.5,
        swallow_validation_errors: bool = True,
        notify_on_total_failure: bool = False,
        clock: Callable[[], str] = utc_now_iso,
    ):
        if retry_attempts < 1:
            raise ValueError("retry_attempts must be at least 1")
        self.store = store
        self.remote = remote
        self.bus = bus
        self.retry_attempts = retry_attempts
        self.retry_max_wait = retry_max_wait
        self.retry_multiplier = retry_multiplier
        self.swallow_validation_errors = swallow_validation_errors
        self.notify_on_total_failure = notify_on_total_failure
        self.clock = clock

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def upsert(
        self,
        namespace: KeyNamespace,
        parent_id: Optional[EntityId],
        entity_id: Optional[EntityId],
        patch: PatchLike,
        remote: Optional[RemoteCall] = None,
        defaults: Optional[Dict[str, Any]] = None,
        touch: bool = True,
        extra_keys: Iterable[QueryKey] = (),
    ) -> MutationResult:
        """
        Merge patch into the record with entity_id, or add it if absent.

        Args:
            namespace: Which mirrored list to change
            parent_id: Owner of the list (None for top-level lists)
            entity_id: Record to change; None always creates
            patch: Fields to set; an explicit None clears a field
            remote: Remote request to make, None for a local-only change
            defaults: Base fields for a newly added record
            touch: Stamp updatedAt (and createdAt for new records)
            extra_keys: Additional query keys to invalidate

        Returns:
            MutationResult
        """
        fields = _patch_fields(patch)
        now = self.clock()
        record_id = entity_id if entity_id is not None else new_client_id()

        def apply(records: List[Dict[str, Any]]) -> Dict[str, Any]:
            index = find_index(records, record_id)
            if index >= 0:
                updated = merge_record(records[index], fields)
                if touch:
                    updated["updatedAt"] = now
                records[index] = updated
                return updated
            created = dict(defaults or {})
            created.update(fields)
            created["id"] = record_id
            if touch:
                created.setdefault("createdAt", now)
                created["updatedAt"] = now
            records.append(created)
            return created

        return await self._execute(
            "upsert", namespace, parent_id, record_id, apply, remote, extra_keys
        )

    async def create(
        self,
        namespace: KeyNamespace,
        parent_id: Optional[EntityId],
        record: Dict[str, Any],
        remote: Optional[RemoteCall] = None,
        prepend: bool = False,
        extra_keys: Iterable[QueryKey] = (),
    ) -> MutationResult:
        """
        Add a new record to the mirror and the remote collection.

        If the remote returns the created record, its fields (including a
        server-assigned id) are folded into the mirror copy.
        """
        created = dict(record)
        created.setdefault("id", new_client_id())
        if "createdAt" not in created and "timestamp" not in created:
            now = self.clock()
            created["createdAt"] = now
            created["updatedAt"] = now
        client_id = created["id"]

        def apply(records: List[Dict[str, Any]]) -> Dict[str, Any]:
            if prepend:
                records.insert(0, created)
            else:
                records.append(created)
            return created

        result = await self._execute(
            "create", namespace, parent_id, client_id, apply, remote, extra_keys
        )
        if result.remote_success and isinstance(result.remote_data, dict):
            self._adopt_remote_record(namespace, parent_id, client_id, result)
        return result

    async def delete(
        self,
        namespace: KeyNamespace,
        parent_id: Optional[EntityId],
        entity_id: EntityId,
        remote: Optional[RemoteCall] = None,
        extra_keys: Iterable[QueryKey] = (),
    ) -> MutationResult:
        """Remove the record from the mirror and the remote collection."""

        def apply(records: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
            index = find_index(records, entity_id)
            if index >= 0:
                records.pop(index)
            return None

        return await self._execute(
            "delete", namespace, parent_id, entity_id, apply, remote, extra_keys
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _execute(
        self,
        operation: str,
        namespace: KeyNamespace,
        parent_id: Optional[EntityId],
        entity_id: EntityId,
        apply: Callable[[List[Dict[str, Any]]], Optional[Dict[str, Any]]],
        remote: Optional[RemoteCall],
        extra_keys: Iterable[QueryKey],
    ) -> MutationResult:
        key = namespace.storage_key(parent_id)
        log = mutation_logger(__name__, key, operation, entity_id)
        collector = ErrorCollector()

        # 1-3: local read, change, write
        snapshot: Optional[List[Dict[str, Any]]] = None
        record: Optional[Dict[str, Any]] = None
        local_success = False
        try:
            snapshot = self.store.get(key)
            records = list(snapshot) if snapshot is not None else []
            record = apply(records)
            if namespace.sort_field:
                records = sort_by_date(records, namespace.sort_field)
            self.store.set(key, records)
            local_success = True
        except LocalStoreError as e:
            collector.add_exception("local", operation, e)
            log.warning(f"Local write failed, continuing with remote: {e}")

        # 4: remote
        remote_success: Optional[bool] = None
        remote_error_kind: Optional[ErrorKind] = None
        remote_data: Any = None
        if remote is not None and namespace.remote:
            try:
                response = await self._send(remote)
                remote_success = True
                remote_data = response.data
                if record is None and isinstance(remote_data, dict) and remote_data:
                    # Mirror was unreadable; the server copy is the only full record
                    record = remote_data
            except RemoteApiError as e:
                remote_success = False
                remote_error_kind = e.kind
                collector.add_exception("remote", operation, e)
                log.log(
                    log_level_for(e.kind),
                    f"Remote {remote.method} {remote.path} failed ({e.kind.value}): {e}",
                )

        # Strict mode: a rejected request undoes the local change
        if (
            remote_error_kind == ErrorKind.VALIDATION
            and not self.swallow_validation_errors
        ):
            if local_success:
                self._rollback(namespace, key, entity_id, snapshot, log)
            return MutationResult(
                success=False,
                local_success=False,
                remote_success=False,
                remote_error_kind=remote_error_kind,
                errors=collector.errors,
                record=record,
            )

        success = local_success or bool(remote_success)

        # 5: invalidation
        notified = False
        if success or self.notify_on_total_failure:
            keys = namespace.query_keys(parent_id, entity_id) + list(extra_keys)
            await self.bus.publish(keys)
            notified = True

        if not success:
            log.error("Failed on both channels")
        elif collector.errors:
            log.info(f"Succeeded degraded: {collector.summary()}")
        else:
            log.debug("Succeeded")

        return MutationResult(
            success=success,
            local_success=local_success,
            remote_success=remote_success,
            remote_error_kind=remote_error_kind,
            errors=collector.errors,
            record=record,
            notified=notified,
            remote_data=remote_data,
        )

    async def _send(self, call: RemoteCall) -> RemoteResponse:
        """Send call, retrying transient failures when configured."""
        if self.retry_attempts == 1:
            return await self.remote.request(call.method, call.path, call.body)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.retry_attempts),
            wait=wait_exponential(multiplier=self.retry_multiplier, max=self.retry_max_wait),
            retry=retry_if_exception(_is_transient),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await self.remote.request(call.method, call.path, call.body)

    def _rollback(
        self,
        namespace: KeyNamespace,
        key: str,
        entity_id: EntityId,
        snapshot: Optional[List[Dict[str, Any]]],
        log: MutationLogger,
    ) -> None:
        """
        Revert one record to its pre-mutation version.

        The list is re-read so that writes to other records made while the
        remote call was in flight are kept.
        """
        previous_index = find_index(snapshot, entity_id) if snapshot else -1
        try:
            records = self.store.read_list(key)
            index = find_index(records, entity_id)
            if previous_index < 0:
                if index >= 0:
                    records.pop(index)
            elif index >= 0:
                records[index] = snapshot[previous_index]
            else:
                records.insert(min(previous_index, len(records)), snapshot[previous_index])

            if snapshot is None and not records:
                self.store.delete(key)
            else:
                if namespace.sort_field:
                    records = sort_by_date(records, namespace.sort_field)
                self.store.set(key, records)
            log.info("Rolled back after remote rejection")
        except LocalStoreError as e:
            log.error(f"Rollback failed: {e}")

    def _adopt_remote_record(
        self,
        namespace: KeyNamespace,
        parent_id: Optional[EntityId],
        client_id: EntityId,
        result: MutationResult,
    ) -> None:
        """Fold the server's copy of a created record into the mirror."""
        server_record = result.remote_data
        key = namespace.storage_key(parent_id)
        try:
            records = self.store.read_list(key)
            index = find_index(records, client_id)
            if index < 0:
                return
            merged = merge_record(records[index], server_record)
            if merged == records[index]:
                return
            records[index] = merged
            if namespace.sort_field:
                records = sort_by_date(records, namespace.sort_field)
            self.store.set(key, records)
            result.record = merged
        except LocalStoreError as e:
            logger.warning(f"Could not adopt server record for '{key}': {e}")
