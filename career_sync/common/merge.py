"""
Record merging and list ordering for the local mirror.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

RecordDict = Dict[str, Any]


def merge_record(existing: RecordDict, patch: RecordDict) -> RecordDict:
    """
    Shallow-merge patch over existing.

    Every field of existing that patch does not name is preserved; every
    field patch names is overridden. Neither input is mutated.
    """
    merged = dict(existing)
    merged.update(patch)
    return merged


def find_index(records: List[RecordDict], entity_id: Any) -> int:
    """
    Position of the record whose id equals entity_id, or -1.

    Ids are compared as strings: the mirror may hold 42 where the caller
    has "42" after a round trip through a URL.
    """
    wanted = str(entity_id)
    for index, record in enumerate(records):
        if isinstance(record, dict) and str(record.get("id")) == wanted:
            return index
    return -1


def parse_date(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 date or datetime into an aware UTC datetime.

    Naive values are assumed to be UTC. Returns None for absent or
    unparseable values.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value))
        except ValueError:
            logger.debug(f"Unparseable date value {value!r}, treating as absent")
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def sort_by_date(records: List[RecordDict], field: str) -> List[RecordDict]:
    """
    Order records by a date field ascending, absent dates last.

    Python's sort is stable, so ties (including every absent date) keep
    their insertion order.
    """
    def sort_key(record: RecordDict):
        parsed = parse_date(record.get(field)) if isinstance(record, dict) else None
        if parsed is None:
            return (1, datetime.min.replace(tzinfo=timezone.utc))
        return (0, parsed)

    return sorted(records, key=sort_key)


def union_by_id(remote: List[RecordDict], local: List[RecordDict]) -> List[RecordDict]:
    """
    Union remote records with the local mirror.

    Remote records come first, each merged over its local counterpart so
    fields only the mirror knows about survive. Records only the mirror
    holds (written while the remote was unreachable) follow in mirror order.
    """
    local_by_id = {
        str(record.get("id")): record
        for record in local
        if isinstance(record, dict) and record.get("id") is not None
    }
    seen = set()
    merged: List[RecordDict] = []

    for record in remote:
        if not isinstance(record, dict):
            continue
        record_id = str(record.get("id"))
        seen.add(record_id)
        base = local_by_id.get(record_id)
        merged.append(merge_record(base, record) if base is not None else dict(record))

    for record in local:
        if not isinstance(record, dict):
            continue
        if str(record.get("id")) not in seen:
            merged.append(dict(record))

    return merged
