"""
Unit tests for career_sync/common/namespaces.py
"""

import pytest

from career_sync.common.namespaces import (
    ALL_FOLLOWUPS_KEY,
    APPLICATIONS,
    CONTACT_FOLLOWUPS,
    CONTACT_NOTES,
    FOLLOWUPS,
    INTERVIEW_STAGES,
    NEED_FOLLOWUP_KEY,
    UPCOMING_INTERVIEWS_KEY,
    KeyNamespace,
    NamespaceRegistry,
    default_registry,
)


class TestStorageKeys:
    def test_child_list_keys(self):
        assert INTERVIEW_STAGES.storage_key(42) == "mockInterviewStages_42"
        assert FOLLOWUPS.storage_key("42") == "mockFollowups_42"
        assert CONTACT_FOLLOWUPS.storage_key(3) == "mockContactFollowups_3"
        assert CONTACT_NOTES.storage_key(3) == "notes.3"

    def test_top_level_key(self):
        assert APPLICATIONS.storage_key() == "mockJobApplications"

    def test_parse_storage_key(self):
        assert FOLLOWUPS.parse_storage_key("mockFollowups_42") == (True, "42")
        assert FOLLOWUPS.parse_storage_key("mockFollowups_") == (False, None)
        assert FOLLOWUPS.parse_storage_key("theme") == (False, None)


class TestQueryKeys:
    def test_child_list_invalidates_parent_detail_list_and_aggregates(self):
        keys = FOLLOWUPS.query_keys(42, 7)

        assert keys == [
            ("applications", "42"),
            ("applications", "42", "followups"),
            ALL_FOLLOWUPS_KEY,
        ]

    def test_top_level_invalidates_entity_detail(self):
        keys = APPLICATIONS.query_keys(None, 42)

        assert ("applications", "42") in keys
        assert ("applications",) in keys
        assert UPCOMING_INTERVIEWS_KEY in keys

    def test_contact_followups_feed_need_followup(self):
        assert NEED_FOLLOWUP_KEY in CONTACT_FOLLOWUPS.query_keys(3, 1)


class TestPaths:
    def test_collection_and_item_paths(self):
        assert INTERVIEW_STAGES.collection_path(42) == "/api/applications/42/stages"
        assert INTERVIEW_STAGES.item_path(42, 9) == "/api/applications/42/stages/9"
        assert APPLICATIONS.item_path(None, 42) == "/api/applications/42"
        assert CONTACT_FOLLOWUPS.item_path(3, 1) == "/api/contacts/3/followups/1"


class TestRegistry:
    def test_resolves_longest_prefix(self):
        registry = default_registry()

        namespace, parent_id = registry.resolve_storage_key("mockContactFollowups_3")

        assert namespace is CONTACT_FOLLOWUPS
        assert parent_id == "3"

    def test_unknown_key_resolves_to_none(self):
        assert default_registry().resolve_storage_key("sidebarCollapsed") is None

    def test_conflicting_registration_rejected(self):
        registry = NamespaceRegistry()
        registry.register(FOLLOWUPS)
        registry.register(FOLLOWUPS)  # same definition is fine

        with pytest.raises(ValueError):
            registry.register(KeyNamespace("followups", "other", "_", "x"))

    def test_get_unknown_raises(self):
        with pytest.raises(KeyError):
            default_registry().get("nope")

    def test_contains_and_iter(self):
        registry = default_registry()
        assert "contact_notes" in registry
        assert CONTACT_NOTES in list(registry)
