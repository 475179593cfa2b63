"""
Test Configuration and Fixtures.

Provides shared fixtures for all tests.
"""

from datetime import date, datetime, timezone
from unittest.mock import MagicMock

import pytest
from flask import Flask
from flask.testing import FlaskClient

from noreply_pro.app import create_app
from noreply_pro.core.identifiers import sequential_ids
from noreply_pro.infrastructure.http import DraftWriterClient
from noreply_pro.infrastructure.storage import (
    AutomationRule,
    Category,
    FollowUp,
    FollowUpStatus,
    Platform,
    Priority,
    Template,
    Tone,
)
from noreply_pro.services import Storage


FIXED_NOW = datetime(2024, 1, 15, 10, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def fixed_clock():
    """Clock always returning FIXED_NOW."""
    return lambda: FIXED_NOW


@pytest.fixture
def storage(fixed_clock) -> Storage:
    """In-memory storage with deterministic ids (id-1, id-2, ...)."""
    return Storage.in_memory(id_generator=sequential_ids("id-"), clock=fixed_clock)


@pytest.fixture
def mock_draft_writer() -> MagicMock:
    """Drafting client that never calls the network."""
    client = MagicMock(spec=DraftWriterClient)
    client.is_configured = True
    client.generate_draft.return_value = "Hi Jane, just following up on the proposal."
    return client


@pytest.fixture
def app(storage, mock_draft_writer) -> Flask:
    """Create test Flask application."""
    return create_app(
        {"TESTING": True},
        storage=storage,
        draft_writer=mock_draft_writer,
    )


@pytest.fixture
def client(app: Flask) -> FlaskClient:
    """Create test client."""
    return app.test_client()


@pytest.fixture
def sample_follow_up() -> FollowUp:
    """Create a sample follow-up for testing."""
    return FollowUp(
        id="a",
        title="Proposal follow-up",
        recipient="Jane Doe",
        platform=Platform.LINKEDIN,
        status=FollowUpStatus.PENDING,
        priority=Priority.HIGH,
        category=Category.SALES,
        due_date=date(2024, 1, 20),
        notes="Sent the deck on Monday.",
        created_at=datetime(2024, 1, 10, 9, 30, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def sample_rule() -> AutomationRule:
    """Create a sample automation rule for testing."""
    return AutomationRule(
        id="r-1",
        name="Weekly nudge",
        trigger_days=5,
        tone=Tone.CASUAL,
        enabled=True,
    )


@pytest.fixture
def sample_template() -> Template:
    """Create a sample template for testing."""
    return Template(
        id="t-1",
        name="Short ping",
        content="Hi [Name], any update?",
        tone=Tone.SHORT,
    )
