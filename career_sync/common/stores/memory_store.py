"""
In-Process Local Store

Holds serialized JSON strings in a dict, mirroring what a browser's
storage does: values must survive a JSON round trip, and a reader never
shares a mutable list with a writer.
"""

import logging
from typing import Dict, List, Optional

from .base import LocalStoreInterface, Records, decode_records, encode_records

logger = logging.getLogger(__name__)


class InMemoryLocalStore(LocalStoreInterface):
    """
    Single-process local mirror.

    There is no cross-instance notification: each process has its own
    mirror. Use RedisLocalStore when several instances must share one.
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        """
        Args:
            initial: Optional pre-seeded raw values (key -> JSON string)
        """
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[Records]:
        return decode_records(key, self._data.get(key))

    def set(self, key: str, records: Records) -> None:
        self._data[key] = encode_records(key, records)
        logger.debug(f"Local store set {key} ({len(records)} records)")

    def delete(self, key: str) -> bool:
        existed = self._data.pop(key, None) is not None
        if existed:
            logger.debug(f"Local store deleted {key}")
        return existed

    def keys(self, prefix: str = "") -> List[str]:
        return sorted(k for k in self._data if k.startswith(prefix))

    def set_raw(self, key: str, raw: str) -> None:
        """Store a raw string as-is (used to seed legacy or corrupted data)."""
        self._data[key] = raw
