"""Pytest fixtures for backend tests."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.main import create_app
from app.services.vote_observers import VoteEvent
from tests.fakes import FakeSupabaseClient, bearer

ADMIN_CODE = "let-me-administer"


class RecordingObserver:
    """Collect vote events for assertions."""

    def __init__(self) -> None:
        self.events: list[VoteEvent] = []

    def update(self, event: VoteEvent) -> None:
        self.events.append(event)


@pytest.fixture
def settings() -> Settings:
    """Settings built explicitly so no `.env` or environment leaks in."""
    return Settings(
        _env_file=None,
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        jwt_secret="test-secret-key-with-enough-length-for-hs256",
        admin_signup_code=ADMIN_CODE,
        bcrypt_rounds=4,
        vote_log_path=None,
        log_level="WARNING",
    )


@pytest.fixture
def store() -> FakeSupabaseClient:
    return FakeSupabaseClient()


@pytest.fixture
def recorder() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture
def client(settings: Settings, store: FakeSupabaseClient, recorder: RecordingObserver) -> TestClient:
    """Create a FastAPI test client backed by the in-memory store."""
    app = create_app(settings, client=store, observers=[recorder])
    return TestClient(app)


@pytest.fixture
def register(client: TestClient) -> Callable[..., dict[str, Any]]:
    """Register a user and return the auth response body."""

    def _register(
        name: str = "Voter",
        email: str = "voter@example.com",
        password: str = "secret123",
        role: str = "Voter",
    ) -> dict[str, Any]:
        body = {"name": name, "email": email, "password": password, "role": role}
        if role == "Admin":
            body["adminCode"] = ADMIN_CODE
        response = client.post("/api/auth/register", json=body)
        assert response.status_code == 201, response.text
        return response.json()

    return _register


@pytest.fixture
def admin_headers(register) -> dict[str, str]:
    return bearer(register(name="Ada Admin", email="admin@example.com", role="Admin")["token"])


@pytest.fixture
def voter_headers(register) -> dict[str, str]:
    return bearer(register(name="Vera Voter", email="a@x.com")["token"])


@pytest.fixture
def make_election(client: TestClient, admin_headers: dict[str, str]):
    """Create an election with the given candidate names; returns ids."""

    def _make(title: str = "E1", candidates: tuple[str, ...] = ("C1",)) -> dict[str, Any]:
        response = client.post("/api/election", json={"title": title}, headers=admin_headers)
        assert response.status_code == 201, response.text
        election_id = response.json()["election"]["id"]

        candidate_ids = []
        for name in candidates:
            created = client.post(
                "/api/candidate",
                json={"name": name, "position": "President", "electionId": election_id},
                headers=admin_headers,
            )
            assert created.status_code == 201, created.text
            candidate_ids.append(created.json()["candidate"]["id"])
        return {"id": election_id, "candidates": candidate_ids}

    return _make
