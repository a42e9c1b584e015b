"""
Unit tests for career_sync/services/dashboard_service.py
"""

from datetime import datetime, timezone

import pytest

from career_sync.common.stores import InMemoryLocalStore
from career_sync.services.dashboard_service import DashboardService

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def store():
    store = InMemoryLocalStore()
    store.set("mockJobApplications", [
        {"id": 42, "status": "Interviewing", "company": "Acme", "jobTitle": "Backend Engineer"},
        {"id": 43, "status": "Rejected", "company": "Globex", "jobTitle": "SRE"},
    ])
    return store


@pytest.fixture
def dashboard(store):
    return DashboardService(store, now=lambda: NOW)


class TestPendingFollowups:
    def test_counts_incomplete_across_applications_and_contacts(self, dashboard, store):
        store.set("mockFollowups_42", [
            {"id": 1, "completed": False},
            {"id": 2, "completed": True},
            {"id": 3},
        ])
        store.set("mockFollowups_43", [{"id": 4, "completed": False}])
        store.set("mockContactFollowups_3", [{"id": 5, "completed": False}])

        assert dashboard.pending_followup_count() == 4

    def test_zero_when_nothing_mirrored(self):
        assert DashboardService(InMemoryLocalStore()).pending_followup_count() == 0

    def test_contact_followups_not_counted_twice(self, dashboard, store):
        # "mockFollowups_" must not match "mockContactFollowups_3"
        store.set("mockContactFollowups_3", [{"id": 5, "completed": False}])
        assert dashboard.pending_followup_count() == 1


class TestUpcomingInterviews:
    def test_future_pending_stages_of_interviewing_applications(self, dashboard, store):
        store.set("mockInterviewStages_42", [
            {"id": "past", "scheduledDate": "2024-05-01T10:00:00Z", "outcome": "pending"},
            {"id": "later", "scheduledDate": "2024-07-01T10:00:00Z", "outcome": "scheduled"},
            {"id": "soon", "scheduledDate": "2024-06-02T10:00:00Z"},
            {"id": "done", "scheduledDate": "2024-06-05T10:00:00Z", "outcome": "passed"},
            {"id": "undated", "outcome": "pending"},
        ])
        store.set("mockInterviewStages_43", [
            {"id": "rejected-app", "scheduledDate": "2024-06-10T10:00:00Z"},
        ])

        upcoming = dashboard.upcoming_interviews()

        assert [s["id"] for s in upcoming] == ["soon", "later"]
        assert upcoming[0]["company"] == "Acme"
        assert upcoming[0]["jobTitle"] == "Backend Engineer"

    def test_limit(self, dashboard, store):
        store.set("mockInterviewStages_42", [
            {"id": "a", "scheduledDate": "2024-06-03"},
            {"id": "b", "scheduledDate": "2024-06-04"},
        ])

        assert [s["id"] for s in dashboard.upcoming_interviews(limit=1)] == ["a"]

    def test_cleared_outcome_counts_as_pending(self, dashboard, store):
        store.set("mockInterviewStages_42", [
            {"id": "cleared", "scheduledDate": "2024-06-03T10:00:00Z", "outcome": None},
        ])

        assert [s["id"] for s in dashboard.upcoming_interviews()] == ["cleared"]

    def test_stages_of_unknown_application_skipped(self, dashboard, store):
        store.set("mockInterviewStages_99", [{"id": "x", "scheduledDate": "2024-06-03"}])
        assert dashboard.upcoming_interviews() == []
