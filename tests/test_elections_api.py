"""Election lifecycle endpoints."""

from __future__ import annotations

from fastapi.testclient import TestClient

from tests.fakes import FakeSupabaseClient


def test_create_election_starts_open(client: TestClient, admin_headers) -> None:
    response = client.post(
        "/api/election",
        json={"title": "Student Council", "description": "Annual vote"},
        headers=admin_headers,
    )

    assert response.status_code == 201
    election = response.json()["election"]
    assert election["is_open"] is True
    assert election["candidates"] == []
    assert election["description"] == "Annual vote"


def test_create_election_requires_title(client: TestClient, admin_headers) -> None:
    response = client.post("/api/election", json={"title": ""}, headers=admin_headers)
    assert response.status_code == 400


def test_toggle_reports_new_state(client: TestClient, make_election, admin_headers) -> None:
    election = make_election()

    closed = client.put(
        "/api/election/toggle",
        json={"electionId": election["id"], "isOpen": False},
        headers=admin_headers,
    )
    reopened = client.put(
        "/api/election/toggle",
        json={"election_id": election["id"], "is_open": True},
        headers=admin_headers,
    )

    assert closed.json()["message"] == "Election closed"
    assert closed.json()["election"]["is_open"] is False
    assert reopened.json()["message"] == "Election opened"


def test_toggle_missing_election_is_not_found(client: TestClient, admin_headers) -> None:
    response = client.put(
        "/api/election/toggle",
        json={"electionId": "missing", "isOpen": False},
        headers=admin_headers,
    )
    assert response.status_code == 404


def test_list_elections_newest_first_with_candidate_refs(
    client: TestClient, make_election, voter_headers
) -> None:
    older = make_election(title="Older", candidates=("A", "B"))
    make_election(title="Newer", candidates=())

    body = client.get("/api/election", headers=voter_headers).json()

    assert body["count"] == 2
    assert [e["title"] for e in body["elections"]] == ["Newer", "Older"]
    assert body["elections"][1]["candidates"] == older["candidates"]
    assert body["elections"][1]["candidate_count"] == 2


def test_list_elections_when_none_exist(client: TestClient, voter_headers) -> None:
    body = client.get("/api/election", headers=voter_headers).json()
    assert body["count"] == 0
    assert body["elections"] == []


def test_delete_election_cascades(
    client: TestClient, store: FakeSupabaseClient, make_election, admin_headers, voter_headers
) -> None:
    election = make_election()
    client.post(
        "/api/vote",
        json={"candidateId": election["candidates"][0], "electionId": election["id"]},
        headers=voter_headers,
    )

    response = client.delete(f"/api/election/{election['id']}", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["message"] == "Election deleted"
    assert store.tables["elections"] == []
    assert store.tables["candidates"] == []
    assert store.tables["votes"] == []


def test_delete_missing_election_is_not_found(client: TestClient, admin_headers) -> None:
    assert client.delete("/api/election/missing", headers=admin_headers).status_code == 404
