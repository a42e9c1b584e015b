"""
Mirrored read path.

Reads prefer the remote API and fall back to the local mirror. A
successful remote read is unioned with the mirror by id so records and
fields that only exist locally (written while the remote was down) are
not lost, then written back to keep the mirror current.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..common.entities import EntityId
from ..common.error_handling import ErrorCollector, LocalStoreError, RemoteApiError, SyncError
from ..common.merge import sort_by_date, union_by_id
from ..common.namespaces import KeyNamespace
from ..common.remote_api import RemoteApiClient
from ..common.stores.base import LocalStoreInterface

logger = logging.getLogger(__name__)


@dataclass
class ReadResult:
    """
    Records returned by a mirrored read.

    source is "remote" (remote data unioned with the mirror), "local"
    (mirror only) or "none" (both channels failed).
    """
    records: List[Dict[str, Any]]
    source: str
    errors: List[SyncError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.source != "none"


def _extract_list(data: Any) -> Optional[List[Dict[str, Any]]]:
    """Accept a bare JSON array or an envelope like {"items": [...]}."""
    if isinstance(data, list):
        return [item for item in data if isinstance(item, dict)]
    if isinstance(data, dict):
        for envelope_key in ("items", "data", "results"):
            value = data.get(envelope_key)
            if isinstance(value, list):
                return [item for item in value if isinstance(item, dict)]
    return None


class MirroredReader:
    """Remote-first list reads with local fallback."""

    def __init__(self, store: LocalStoreInterface, remote: RemoteApiClient):
        self.store = store
        self.remote = remote

    async def fetch_list(
        self,
        namespace: KeyNamespace,
        parent_id: Optional[EntityId] = None,
    ) -> ReadResult:
        """
        Read the list for namespace and parent_id.

        Returns:
            ReadResult sorted by the namespace's date field, if it has one
        """
        collector = ErrorCollector()
        key = namespace.storage_key(parent_id)

        local: Optional[List[Dict[str, Any]]] = None
        try:
            local = self.store.read_list(key)
        except LocalStoreError as e:
            collector.add_exception("local", "read", e)
            logger.warning(f"Local read of '{key}' failed: {e}")

        remote_records: Optional[List[Dict[str, Any]]] = None
        if namespace.remote:
            path = namespace.collection_path(parent_id)
            try:
                response = await self.remote.get(path)
                remote_records = _extract_list(response.data)
                if remote_records is None:
                    logger.warning(f"Unexpected list payload from GET {path}, using mirror")
            except RemoteApiError as e:
                collector.add_exception("remote", "read", e)
                logger.warning(f"Remote GET {path} failed ({e.kind.value}), using mirror: {e}")

        if remote_records is not None:
            merged = union_by_id(remote_records, local or [])
            if namespace.sort_field:
                merged = sort_by_date(merged, namespace.sort_field)
            # Unchanged data is not rewritten so other instances are not re-invalidated
            if local is not None and merged != local:
                try:
                    self.store.set(key, merged)
                except LocalStoreError as e:
                    collector.add_exception("local", "write-back", e)
                    logger.warning(f"Mirror write-back of '{key}' failed: {e}")
            return ReadResult(records=merged, source="remote", errors=collector.errors)

        if local is not None:
            records = sort_by_date(local, namespace.sort_field) if namespace.sort_field else local
            return ReadResult(records=records, source="local", errors=collector.errors)

        logger.error(f"List '{key}' unavailable on both channels")
        return ReadResult(records=[], source="none", errors=collector.errors)
