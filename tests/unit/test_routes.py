"""
Tests for API Routes.

Tests the Flask HTTP endpoints against an in-memory store.
"""

from unittest.mock import MagicMock

from noreply_pro.app import create_app
from noreply_pro.config import DraftWriterSettings
from noreply_pro.core.exceptions import DraftGenerationError, SubstrateError
from noreply_pro.infrastructure.http import DraftWriterClient
from noreply_pro.infrastructure.storage import MemorySubstrate
from noreply_pro.services import Storage


FOLLOW_UP_BODY = {
    "title": "Proposal follow-up",
    "recipient": "Jane Doe",
    "platform": "LinkedIn",
    "priority": "high",
    "category": "Sales",
    "dueDate": "2024-01-20",
}


class TestHealthEndpoint:
    """Tests for health check endpoint."""

    def test_health_returns_healthy(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.get_json()
        assert data["success"] is True
        assert data["status"] == "healthy"
        assert data["substrate"] == "MemorySubstrate"


class TestFollowUpEndpoints:
    """Tests for /follow-ups endpoints."""

    def test_list_starts_empty(self, client):
        response = client.get("/follow-ups")

        assert response.status_code == 200
        assert response.get_json()["follow_ups"] == []

    def test_create_assigns_id_and_defaults(self, client):
        response = client.post("/follow-ups", json=FOLLOW_UP_BODY)

        assert response.status_code == 201
        item = response.get_json()["item"]
        assert item["id"] == "id-1"
        assert item["status"] == "pending"
        assert item["createdAt"] == "2024-01-15T10:00:00+00:00"
        assert item["dueDate"] == "2024-01-20"

    def test_newest_follow_up_is_listed_first(self, client):
        client.post("/follow-ups", json=FOLLOW_UP_BODY)
        client.post("/follow-ups", json={**FOLLOW_UP_BODY, "title": "Second"})

        titles = [item["title"] for item in client.get("/follow-ups").get_json()["follow_ups"]]

        assert titles == ["Second", "Proposal follow-up"]

    def test_put_replaces_by_id(self, client):
        client.post("/follow-ups", json=FOLLOW_UP_BODY)

        response = client.put(
            "/follow-ups/id-1",
            json={**FOLLOW_UP_BODY, "status": "completed"},
        )

        assert response.status_code == 200
        items = client.get("/follow-ups").get_json()["follow_ups"]
        assert len(items) == 1
        assert items[0]["status"] == "completed"
        assert items[0]["createdAt"] == "2024-01-15T10:00:00+00:00"

    def test_create_requires_title(self, client):
        response = client.post("/follow-ups", json={"recipient": "Jane"})

        assert response.status_code == 400
        data = response.get_json()
        assert data["success"] is False
        assert "title" in data["error"]

    def test_create_rejects_unknown_platform(self, client):
        response = client.post("/follow-ups", json={**FOLLOW_UP_BODY, "platform": "Fax"})

        assert response.status_code == 400

    def test_delete_absent_id_succeeds(self, client):
        response = client.delete("/follow-ups/missing")

        assert response.status_code == 200
        assert response.get_json()["deleted"] is False

    def test_delete_present_id(self, client):
        client.post("/follow-ups", json=FOLLOW_UP_BODY)

        response = client.delete("/follow-ups/id-1")

        assert response.get_json()["deleted"] is True
        assert client.get("/follow-ups").get_json()["count"] == 0


class TestRuleAndTemplateEndpoints:
    """Tests for /rules and /templates endpoints."""

    def test_rules_are_seeded(self, client):
        rules = client.get("/rules").get_json()["rules"]

        assert [rule["name"] for rule in rules] == ["Standard 3-Day Ping", "Urgent 7-Day Push"]

    def test_create_rule_is_appended(self, client):
        response = client.post("/rules", json={"name": "Nudge", "triggerDays": 5, "tone": "casual"})

        assert response.status_code == 201
        rules = client.get("/rules").get_json()["rules"]
        assert rules[-1]["name"] == "Nudge"
        assert rules[-1]["enabled"] is True

    def test_rule_trigger_days_must_be_positive(self, client):
        response = client.post("/rules", json={"name": "Never", "triggerDays": 0})

        assert response.status_code == 400

    def test_toggle_rule(self, client):
        response = client.put(
            "/rules/2",
            json={"name": "Urgent 7-Day Push", "triggerDays": 7, "tone": "urgent", "enabled": True},
        )

        assert response.status_code == 200
        assert client.get("/rules").get_json()["rules"][1]["enabled"] is True

    def test_templates_are_seeded(self, client):
        templates = client.get("/templates").get_json()["templates"]

        assert templates == [{
            "id": "1",
            "name": "Standard Follow-up",
            "content": "Hi [Name], just checking in on our previous conversation.",
            "tone": "polite",
        }]

    def test_delete_template(self, client):
        client.delete("/templates/1")

        assert client.get("/templates").get_json()["templates"] == []


class TestBulkEndpoints:
    """Tests for /export and /purge."""

    def test_export_is_downloadable_json(self, client):
        client.post("/follow-ups", json=FOLLOW_UP_BODY)

        response = client.get("/export")

        assert response.status_code == 200
        assert response.headers["Content-Disposition"] == (
            'attachment; filename="noreply-export-2024-01-15.json"'
        )
        data = response.get_json()
        assert len(data["followUps"]) == 1
        assert len(data["rules"]) == 2
        assert data["exportedAt"] == "2024-01-15T10:00:00+00:00"

    def test_purge_requires_confirmation(self, client):
        client.post("/follow-ups", json=FOLLOW_UP_BODY)

        response = client.post("/purge", json={})

        assert response.status_code == 400
        assert client.get("/follow-ups").get_json()["count"] == 1

    def test_purge_with_confirmation(self, client):
        client.post("/follow-ups", json=FOLLOW_UP_BODY)
        client.post("/rules", json={"name": "Nudge", "triggerDays": 5})

        response = client.post("/purge", json={"confirm": True})

        assert response.status_code == 200
        assert client.get("/follow-ups").get_json()["count"] == 0
        assert client.get("/rules").get_json()["count"] == 2


class TestDraftEndpoint:
    """Tests for /drafts."""

    def test_generate_draft(self, client, mock_draft_writer):
        response = client.post(
            "/drafts",
            json={"recipient": "Jane", "context": "Sent the deck", "tone": "polite"},
        )

        assert response.status_code == 200
        assert response.get_json()["draft"] == "Hi Jane, just following up on the proposal."
        mock_draft_writer.generate_draft.assert_called_once()

    def test_draft_can_be_attached_and_saved(self, client):
        client.post("/follow-ups", json=FOLLOW_UP_BODY)

        response = client.post("/drafts", json={
            "recipient": "Jane",
            "context": "Sent the deck",
            "followUpId": "id-1",
            "saveAsTemplate": True,
            "templateName": "Deck chaser",
        })

        data = response.get_json()
        assert data["follow_up"]["notes"] == data["draft"]
        assert data["template"]["name"] == "Deck chaser"

    def test_generation_failure_returns_502(self, client, mock_draft_writer):
        mock_draft_writer.generate_draft.side_effect = DraftGenerationError()

        response = client.post("/drafts", json={"recipient": "Jane", "context": "ctx"})

        assert response.status_code == 502
        assert response.get_json()["error_type"] == "draft_generation_error"

    def test_malformed_model_response_returns_502(self, storage):
        session = MagicMock()
        session.post.return_value.json.return_value = {"candidates": ["oops"]}
        writer = DraftWriterClient(
            config=DraftWriterSettings(api_key="test-key"),
            session=session,
        )
        app = create_app({"TESTING": True}, storage=storage, draft_writer=writer)

        response = app.test_client().post("/drafts", json={"recipient": "Jane", "context": "ctx"})

        assert response.status_code == 502
        assert response.get_json()["error_type"] == "draft_generation_error"
        assert storage.follow_ups.list() == []


class TestPersistenceUnavailable:
    """Substrate failures map to 503."""

    def test_write_failure_returns_503(self, mock_draft_writer):
        substrate = MagicMock(wraps=MemorySubstrate())
        substrate.set.side_effect = SubstrateError("k", "set", "quota exceeded")
        app = create_app(
            {"TESTING": True},
            storage=Storage.build(substrate),
            draft_writer=mock_draft_writer,
        )

        response = app.test_client().post("/follow-ups", json=FOLLOW_UP_BODY)

        assert response.status_code == 503
        assert response.get_json()["error_type"] == "persistence_unavailable"
