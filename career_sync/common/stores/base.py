"""
Local Store Interface Definitions

Defines the abstract interface for the local mirror: a key-value store of
JSON arrays of records. This enables swapping implementations
(in-process, Redis-shared) without changing the reconciling code.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..error_handling import LocalStoreError

logger = logging.getLogger(__name__)

Records = List[Dict[str, Any]]


def encode_records(key: str, records: Records) -> str:
    """
    Serialize records to a JSON array string.

    Raises:
        LocalStoreError: If records are not JSON-serializable
    """
    try:
        return json.dumps(list(records), default=_json_default)
    except (TypeError, ValueError) as e:
        raise LocalStoreError(f"Records for '{key}' are not JSON-serializable: {e}", key=key)


def decode_records(key: str, raw: Optional[str]) -> Optional[Records]:
    """
    Parse a stored JSON array.

    Malformed JSON and non-array values are recoverable: the collection is
    treated as empty and a warning is logged.
    """
    if raw is None:
        return None
    try:
        value = json.loads(raw)
    except (TypeError, ValueError) as e:
        logger.warning(f"Malformed JSON under local key '{key}', treating as empty: {e}")
        return []
    if not isinstance(value, list):
        logger.warning(
            f"Local key '{key}' holds {type(value).__name__}, not a list; treating as empty"
        )
        return []
    return [item for item in value if isinstance(item, dict)]


def _json_default(value: Any) -> Any:
    # datetimes and dates serialize as ISO-8601 strings
    isoformat = getattr(value, "isoformat", None)
    if callable(isoformat):
        return isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class LocalStoreInterface(ABC):
    """
    Abstract interface for the local mirror.

    Implementations:
    - InMemoryLocalStore: single-process dict
    - RedisLocalStore: shared Redis keys with storage-change notifications

    Reads never fail on bad data (see decode_records); reads and writes
    raise LocalStoreError only when the backend itself is unavailable.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[Records]:
        """
        Read the list stored under key.

        Args:
            key: Namespaced store key (e.g., "mockFollowups_42")

        Returns:
            List of records, [] if malformed, None if absent

        Raises:
            LocalStoreError: If the backend is unavailable
        """
        pass

    @abstractmethod
    def set(self, key: str, records: Records) -> None:
        """
        Replace the list stored under key (last write wins).

        Raises:
            LocalStoreError: If records cannot be serialized or stored
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Remove key.

        Returns:
            True if the key existed
        """
        pass

    @abstractmethod
    def keys(self, prefix: str = "") -> List[str]:
        """
        List stored keys starting with prefix.

        Returns:
            Sorted list of keys
        """
        pass

    def read_list(self, key: str) -> Records:
        """Read key, defaulting to an empty list when absent."""
        records = self.get(key)
        return list(records) if records is not None else []
