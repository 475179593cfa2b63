"""
Tests for the Draft-Writer Client and Drafting Service.

HTTP calls are mocked; nothing reaches the network.
"""

import threading
from unittest.mock import MagicMock

import pytest
import requests

from noreply_pro.config import DraftWriterSettings
from noreply_pro.core.exceptions import (
    ConfigurationError,
    DraftGenerationError,
    ValidationError,
)
from noreply_pro.infrastructure.http import (
    DraftRequest,
    DraftWriterClient,
    FALLBACK_DRAFT,
)
from noreply_pro.infrastructure.storage import Tone
from noreply_pro.services import DraftingService


def _response(payload=None, status_code=200, json_error=None):
    response = MagicMock()
    response.status_code = status_code
    response.text = "error body"
    if json_error:
        response.json.side_effect = json_error
    else:
        response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(
            response=response
        )
    return response


class TestDraftRequest:
    """Tests for prompt construction."""

    def test_prompt_includes_recipient_context_and_tone(self):
        prompt = DraftRequest("Jane", "Sent pricing last week", Tone.SHORT).build_prompt()

        assert "Write a follow-up message for Jane." in prompt
        assert "Context: Sent pricing last week" in prompt
        assert "maximum 2 sentences, quick and punchy" in prompt
        assert "Keep it under 150 words." in prompt

    def test_payload_carries_generation_config(self):
        payload = DraftRequest("Jane", "ctx", Tone.POLITE).to_payload(0.8, 0.9)

        assert payload["generationConfig"] == {"temperature": 0.8, "topP": 0.9}
        assert "Jane" in payload["contents"][0]["parts"][0]["text"]


class TestDraftWriterClient:
    """Tests for DraftWriterClient."""

    @pytest.fixture
    def config(self):
        return DraftWriterSettings(
            api_key="test-key",
            model="test-model",
            base_url="https://gemini.test/v1beta",
        )

    @pytest.fixture
    def session(self):
        return MagicMock()

    @pytest.fixture
    def client(self, config, session):
        return DraftWriterClient(config=config, session=session)

    def test_returns_generated_text(self, client, session):
        session.post.return_value = _response({
            "candidates": [{"content": {"parts": [{"text": "  Hi Jane!  "}]}}]
        })

        assert client.generate_draft("Jane", "pricing", Tone.CASUAL) == "Hi Jane!"

        args, kwargs = session.post.call_args
        assert args[0] == "https://gemini.test/v1beta/models/test-model:generateContent"
        assert kwargs["headers"] == {"x-goog-api-key": "test-key"}

    def test_accepts_tone_as_string(self, client, session):
        session.post.return_value = _response({
            "candidates": [{"content": {"parts": [{"text": "ok"}]}}]
        })

        assert client.generate_draft("Jane", "pricing", "urgent") == "ok"

    def test_empty_response_returns_fallback(self, client, session):
        session.post.return_value = _response({"candidates": []})

        assert client.generate_draft("Jane", "pricing", Tone.POLITE) == FALLBACK_DRAFT

    def test_http_error_raises_generation_error(self, client, session):
        session.post.return_value = _response(status_code=500)

        with pytest.raises(DraftGenerationError) as exc_info:
            client.generate_draft("Jane", "pricing", Tone.POLITE)

        assert exc_info.value.status_code == 500
        assert "offline" in str(exc_info.value)

    def test_timeout_raises_generation_error(self, client, session):
        session.post.side_effect = requests.exceptions.Timeout("slow")

        with pytest.raises(DraftGenerationError):
            client.generate_draft("Jane", "pricing", Tone.POLITE)

    def test_invalid_json_raises_generation_error(self, client, session):
        session.post.return_value = _response(json_error=ValueError("bad json"))

        with pytest.raises(DraftGenerationError):
            client.generate_draft("Jane", "pricing", Tone.POLITE)

    @pytest.mark.parametrize("payload", [
        {"candidates": ["oops"]},
        {"candidates": [{"content": {"parts": ["text"]}}]},
        {"candidates": [{"content": {"parts": [{"text": 42}]}}]},
        {"candidates": {"content": {}}},
        ["not", "an", "object"],
    ])
    def test_malformed_body_raises_generation_error(self, client, session, payload):
        session.post.return_value = _response(payload)

        with pytest.raises(DraftGenerationError):
            client.generate_draft("Jane", "pricing", Tone.POLITE)

    def test_candidate_without_text_returns_fallback(self, client, session):
        session.post.return_value = _response({"candidates": [{"content": {"parts": [{}]}}]})

        assert client.generate_draft("Jane", "pricing", Tone.POLITE) == FALLBACK_DRAFT

    def test_missing_api_key_raises_configuration_error(self, session):
        client = DraftWriterClient(config=DraftWriterSettings(api_key=""), session=session)

        with pytest.raises(ConfigurationError):
            client.generate_draft("Jane", "pricing", Tone.POLITE)

        session.post.assert_not_called()


class TestDraftingService:
    """Tests for DraftingService."""

    @pytest.fixture
    def service(self, storage, mock_draft_writer):
        return DraftingService(mock_draft_writer, storage.follow_ups, storage.templates)

    def test_attach_stores_draft_as_notes(self, service, storage, sample_follow_up):
        storage.follow_ups.upsert(sample_follow_up)

        updated = service.attach_to_follow_up("a", "Generated text")

        assert updated.notes == "Generated text"
        assert storage.follow_ups.get("a").notes == "Generated text"
        assert storage.follow_ups.get("a").created_at == sample_follow_up.created_at

    def test_attach_to_unknown_follow_up_raises(self, service):
        with pytest.raises(ValidationError):
            service.attach_to_follow_up("missing", "text")

    def test_attach_after_delete_does_not_reinsert(self, service, storage, sample_follow_up):
        storage.follow_ups.upsert(sample_follow_up)
        storage.follow_ups.delete("a")

        with pytest.raises(ValidationError):
            service.attach_to_follow_up("a", "text")

        assert storage.follow_ups.list() == []

    def test_attach_holds_collection_lock(self, service, storage, sample_follow_up, monkeypatch):
        storage.follow_ups.upsert(sample_follow_up)
        held = []
        real_upsert = storage.follow_ups.upsert

        def try_lock_from_other_thread():
            acquired = storage.follow_ups.lock.acquire(blocking=False)
            if acquired:
                storage.follow_ups.lock.release()
            held.append(not acquired)

        def upsert_and_check_lock(entity):
            other = threading.Thread(target=try_lock_from_other_thread)
            other.start()
            other.join()
            return real_upsert(entity)

        monkeypatch.setattr(storage.follow_ups, "upsert", upsert_and_check_lock)

        service.attach_to_follow_up("a", "text")

        assert held == [True]

    def test_save_as_template_appends(self, service, storage):
        template = service.save_as_template("Hello [Name]", Tone.CASUAL, recipient_name="Jane")

        assert template.name == "Draft for Jane"
        assert storage.templates.list()[-1] == template

    def test_generation_failure_leaves_store_untouched(
        self, service, storage, mock_draft_writer, sample_follow_up
    ):
        storage.follow_ups.upsert(sample_follow_up)
        mock_draft_writer.generate_draft.side_effect = DraftGenerationError()

        with pytest.raises(DraftGenerationError):
            service.generate("Jane", "ctx", Tone.POLITE)

        assert storage.follow_ups.list() == [sample_follow_up]
