"""
Tests for the contact, notes and dashboard routes.
"""

from datetime import datetime, timedelta, timezone


class TestContactRoutes:
    def test_update_contact(self, client, local_store, remote_stub):
        local_store.set("mockContacts", [{"id": 3, "name": "Sam Lee"}])

        response = client.put("/api/contacts/3", json={"company": "Globex"})

        assert response.status_code == 200
        assert remote_stub.calls() == [("PUT", "/api/contacts/3")]
        assert local_store.get("mockContacts")[0] == {
            "id": 3, "name": "Sam Lee", "company": "Globex",
            "updatedAt": local_store.get("mockContacts")[0]["updatedAt"],
        }

    def test_empty_contact_patch_returns_400(self, client):
        assert client.put("/api/contacts/3", json={}).status_code == 400

    def test_schedule_and_complete_contact_followup(self, client, local_store, remote_stub):
        response = client.post(
            "/api/contacts/3/schedule-followup",
            json={"id": "cf1", "description": "Check in after conference"},
        )
        assert response.status_code == 200

        response = client.post("/api/contacts/3/followups/cf1/complete")
        assert response.status_code == 200

        followup = local_store.get("mockContactFollowups_3")[0]
        assert followup["contactId"] == "3"
        assert followup["completed"] is True
        assert remote_stub.calls() == [
            ("POST", "/api/contacts/3/schedule-followup"),
            ("POST", "/api/contacts/3/followups/cf1/complete"),
        ]

    def test_log_interaction_validates_type(self, client):
        response = client.post(
            "/api/contacts/3/log-interaction",
            json={"interactionType": "Carrier Pigeon", "date": "2024-05-01T00:00:00Z"},
        )
        assert response.status_code == 422

    def test_log_interaction(self, client, local_store):
        response = client.post(
            "/api/contacts/3/log-interaction",
            json={"id": "i1", "interactionType": "Call", "date": "2024-05-01T00:00:00Z"},
        )

        assert response.status_code == 200
        assert local_store.get("mockContactInteractions_3")[0]["interactionType"] == "Call"


class TestNoteRoutes:
    def test_notes_never_reach_remote(self, client, local_store, remote_stub):
        response = client.post("/api/contacts/3/notes", json={"text": "Met at PyCon"})

        assert response.status_code == 200
        note_id = response.json()["record"]["id"]

        assert client.put(
            f"/api/contacts/3/notes/{note_id}", json={"text": "Met at PyCon 2024"}
        ).status_code == 200
        listed = client.get("/api/contacts/3/notes").json()

        assert [n["text"] for n in listed["records"]] == ["Met at PyCon 2024"]
        assert remote_stub.requests == []

        assert client.delete(f"/api/contacts/3/notes/{note_id}").status_code == 200
        assert local_store.get("notes.3") == []

    def test_blank_note_rejected(self, client):
        assert client.post("/api/contacts/3/notes", json={"text": ""}).status_code == 422

    def test_legacy_notes_migrated_on_first_list(self, client, local_store):
        local_store.set("mockContacts", [{"id": 3, "notes": "Prefers email"}])

        response = client.get("/api/contacts/3/notes")

        assert response.json()["records"][0]["text"] == "Prefers email"


class TestDashboardRoutes:
    def test_pending_followups(self, client, local_store):
        local_store.set("mockFollowups_1", [{"id": 1, "completed": False}, {"id": 2, "completed": True}])
        local_store.set("mockContactFollowups_5", [{"id": 3}])

        response = client.get("/api/dashboard/pending-followups")

        assert response.status_code == 200
        assert response.json() == {"count": 2}

    def test_upcoming_interviews(self, client, local_store):
        tomorrow = (datetime.now(timezone.utc) + timedelta(days=1)).isoformat()
        next_week = (datetime.now(timezone.utc) + timedelta(days=7)).isoformat()
        local_store.set("mockJobApplications", [
            {"id": 42, "status": "Interviewing", "company": "Acme", "jobTitle": "Engineer"},
        ])
        local_store.set("mockInterviewStages_42", [
            {"id": "b", "scheduledDate": next_week},
            {"id": "a", "scheduledDate": tomorrow, "outcome": "scheduled"},
        ])

        response = client.get("/api/dashboard/upcoming-interviews", params={"limit": 1})

        assert response.status_code == 200
        data = response.json()
        assert [s["id"] for s in data] == ["a"]
        assert data[0]["company"] == "Acme"

    def test_upcoming_interviews_limit_validated(self, client):
        response = client.get("/api/dashboard/upcoming-interviews", params={"limit": 0})
        assert response.status_code == 422
