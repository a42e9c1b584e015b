"""
Dashboard Service

Aggregate views computed from the local mirror: how many follow-ups are
still open, and which interviews are coming up. Both scan every mirrored
child list, so they reflect edits made while the remote was unreachable.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from ..common.entities import ApplicationStatus, StageOutcome
from ..common.merge import find_index, parse_date, sort_by_date
from ..common.namespaces import (
    APPLICATIONS,
    CONTACT_FOLLOWUPS,
    FOLLOWUPS,
    INTERVIEW_STAGES,
    KeyNamespace,
)
from ..common.stores.base import LocalStoreInterface

logger = logging.getLogger(__name__)

_UPCOMING_OUTCOMES = {StageOutcome.PENDING.value, StageOutcome.SCHEDULED.value}


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DashboardService:
    """Mirror-backed aggregate views."""

    def __init__(
        self,
        store: LocalStoreInterface,
        now: Callable[[], datetime] = _utc_now,
    ):
        self.store = store
        self.now = now

    def _child_lists(self, namespace: KeyNamespace) -> Dict[str, List[Dict[str, Any]]]:
        """Every mirrored list of namespace, keyed by parent id."""
        lists: Dict[str, List[Dict[str, Any]]] = {}
        prefix = f"{namespace.storage_prefix}{namespace.separator}"
        for key in self.store.keys(prefix):
            matched, parent_id = namespace.parse_storage_key(key)
            if matched and parent_id is not None:
                lists[parent_id] = self.store.read_list(key)
        return lists

    def pending_followup_count(self) -> int:
        """Incomplete follow-ups across all applications and contacts."""
        count = 0
        for namespace in (FOLLOWUPS, CONTACT_FOLLOWUPS):
            for records in self._child_lists(namespace).values():
                count += sum(1 for record in records if not record.get("completed"))
        return count

    def upcoming_interviews(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Future stages still pending or scheduled, soonest first.

        Only applications currently in Interviewing status count. Each
        stage is returned with its application's company and job title.
        """
        applications = self.store.read_list(APPLICATIONS.storage_key())
        now = self.now()
        upcoming: List[Dict[str, Any]] = []

        for application_id, stages in self._child_lists(INTERVIEW_STAGES).items():
            index = find_index(applications, application_id)
            if index < 0:
                continue
            application = applications[index]
            if application.get("status") != ApplicationStatus.INTERVIEWING.value:
                continue
            for stage in stages:
                scheduled = parse_date(stage.get("scheduledDate"))
                if scheduled is None or scheduled <= now:
                    continue
                if (stage.get("outcome") or StageOutcome.PENDING.value) not in _UPCOMING_OUTCOMES:
                    continue
                entry = dict(stage)
                entry["company"] = application.get("company")
                entry["jobTitle"] = application.get("jobTitle")
                upcoming.append(entry)

        upcoming = sort_by_date(upcoming, "scheduledDate")
        logger.debug(f"{len(upcoming)} upcoming interviews")
        return upcoming[:limit] if limit is not None else upcoming
