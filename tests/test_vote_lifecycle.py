"""Cast, change, withdraw and status of ballots."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.schemas.user import CurrentUser
from app.services.vote_service import VoteService
from app.utils.errors import ConflictError
from app.utils.roles import Role
from tests.fakes import FakeSupabaseClient


def vote_count(client: TestClient, headers: dict[str, str], candidate_id: str) -> int:
    response = client.get(f"/api/candidate/{candidate_id}", headers=headers)
    assert response.status_code == 200, response.text
    return response.json()["candidate"]["vote_count"]


def cast(client: TestClient, headers, election_id: str, candidate_id: str):
    return client.post(
        "/api/vote",
        json={"candidateId": candidate_id, "electionId": election_id},
        headers=headers,
    )


def withdraw(client: TestClient, headers, election_id: str):
    return client.request("DELETE", "/api/vote", json={"electionId": election_id}, headers=headers)


def test_cast_increments_count_and_records_ballot(
    client: TestClient, store: FakeSupabaseClient, make_election, voter_headers
) -> None:
    election = make_election(candidates=("C1", "C2"))
    c1 = election["candidates"][0]

    response = cast(client, voter_headers, election["id"], c1)

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Vote successfully cast"
    assert body["candidate"]["id"] == c1
    assert body["candidate"]["vote_count"] == 1
    assert body["vote"]["candidate_id"] == c1
    assert body["vote"]["election_id"] == election["id"]

    assert len(store.tables["votes"]) == 1
    assert vote_count(client, voter_headers, c1) == 1
    assert vote_count(client, voter_headers, election["candidates"][1]) == 0


def test_second_cast_in_same_election_conflicts(
    client: TestClient, store: FakeSupabaseClient, make_election, voter_headers
) -> None:
    election = make_election(candidates=("C1", "C2"))
    cast(client, voter_headers, election["id"], election["candidates"][0])

    response = cast(client, voter_headers, election["id"], election["candidates"][1])

    assert response.status_code == 409
    assert response.json()["code"] == "ALREADY_VOTED"
    assert len(store.tables["votes"]) == 1


def test_voter_may_vote_once_in_each_election(client: TestClient, make_election, voter_headers) -> None:
    first = make_election(title="E1")
    second = make_election(title="E2")

    assert cast(client, voter_headers, first["id"], first["candidates"][0]).status_code == 201
    assert cast(client, voter_headers, second["id"], second["candidates"][0]).status_code == 201


def test_cast_on_closed_election_never_mutates(
    client: TestClient, store: FakeSupabaseClient, make_election, admin_headers, voter_headers
) -> None:
    election = make_election()
    client.put(
        "/api/election/toggle",
        json={"electionId": election["id"], "isOpen": False},
        headers=admin_headers,
    )

    response = cast(client, voter_headers, election["id"], election["candidates"][0])

    assert response.status_code == 409
    assert response.json()["code"] == "ELECTION_CLOSED"
    assert store.tables["votes"] == []
    assert vote_count(client, voter_headers, election["candidates"][0]) == 0


def test_cast_for_candidate_of_another_election_is_not_found(
    client: TestClient, store: FakeSupabaseClient, make_election, voter_headers
) -> None:
    first = make_election(title="E1")
    second = make_election(title="E2")

    response = cast(client, voter_headers, first["id"], second["candidates"][0])

    assert response.status_code == 404
    assert store.tables["votes"] == []


def test_cast_on_missing_election_is_not_found(client: TestClient, voter_headers) -> None:
    response = cast(client, voter_headers, "missing-election", "missing-candidate")
    assert response.status_code == 404


def test_cast_for_withdrawn_candidate_conflicts(
    client: TestClient, make_election, admin_headers, voter_headers
) -> None:
    election = make_election()
    client.put(
        f"/api/candidate/{election['candidates'][0]}",
        json={"status": "withdrawn"},
        headers=admin_headers,
    )

    response = cast(client, voter_headers, election["id"], election["candidates"][0])
    assert response.status_code == 409


def test_cast_requires_both_ids(client: TestClient, voter_headers) -> None:
    response = client.post("/api/vote", json={"electionId": "e"}, headers=voter_headers)
    assert response.status_code == 400


def test_change_moves_ballot_between_candidates(
    client: TestClient, store: FakeSupabaseClient, make_election, voter_headers
) -> None:
    election = make_election(candidates=("Old", "New"))
    old, new = election["candidates"]
    cast(client, voter_headers, election["id"], old)

    response = client.patch(
        "/api/vote",
        json={"newCandidateId": new, "electionId": election["id"]},
        headers=voter_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["previous_candidate"]["vote_count"] == 0
    assert body["candidate"]["vote_count"] == 1
    assert body["vote"]["candidate_id"] == new
    assert body["vote"]["updated_at"]

    ballots = store.tables["votes"]
    assert len(ballots) == 1
    assert ballots[0]["candidate_id"] == new
    assert vote_count(client, voter_headers, old) == 0
    assert vote_count(client, voter_headers, new) == 1


def test_change_without_ballot_is_not_found(client: TestClient, make_election, voter_headers) -> None:
    election = make_election()
    response = client.patch(
        "/api/vote",
        json={"newCandidateId": election["candidates"][0], "electionId": election["id"]},
        headers=voter_headers,
    )
    assert response.status_code == 404


def test_change_to_foreign_candidate_is_bad_request(
    client: TestClient, make_election, voter_headers
) -> None:
    election = make_election()
    other = make_election(title="Other")
    cast(client, voter_headers, election["id"], election["candidates"][0])

    response = client.patch(
        "/api/vote",
        json={"newCandidateId": other["candidates"][0], "electionId": election["id"]},
        headers=voter_headers,
    )
    assert response.status_code == 400


def test_change_on_closed_election_conflicts(
    client: TestClient, make_election, admin_headers, voter_headers
) -> None:
    election = make_election(candidates=("A", "B"))
    cast(client, voter_headers, election["id"], election["candidates"][0])
    client.put(
        "/api/election/toggle",
        json={"electionId": election["id"], "isOpen": False},
        headers=admin_headers,
    )

    response = client.patch(
        "/api/vote",
        json={"newCandidateId": election["candidates"][1], "electionId": election["id"]},
        headers=voter_headers,
    )
    assert response.status_code == 409


def test_withdraw_removes_ballot_and_count(
    client: TestClient, store: FakeSupabaseClient, make_election, voter_headers
) -> None:
    election = make_election()
    c1 = election["candidates"][0]
    cast(client, voter_headers, election["id"], c1)

    response = withdraw(client, voter_headers, election["id"])

    assert response.status_code == 200
    assert response.json()["candidate"]["vote_count"] == 0
    assert store.tables["votes"] == []
    assert vote_count(client, voter_headers, c1) == 0


def test_withdraw_without_ballot_is_not_found(client: TestClient, make_election, voter_headers) -> None:
    election = make_election()
    assert withdraw(client, voter_headers, election["id"]).status_code == 404


def test_withdraw_on_closed_election_conflicts(
    client: TestClient, store: FakeSupabaseClient, make_election, admin_headers, voter_headers
) -> None:
    election = make_election()
    cast(client, voter_headers, election["id"], election["candidates"][0])
    client.put(
        "/api/election/toggle",
        json={"electionId": election["id"], "isOpen": False},
        headers=admin_headers,
    )

    response = withdraw(client, voter_headers, election["id"])

    assert response.status_code == 409
    assert len(store.tables["votes"]) == 1


def test_status_lists_all_ballots_with_summaries(
    client: TestClient, make_election, voter_headers
) -> None:
    first = make_election(title="E1")
    second = make_election(title="E2")
    cast(client, voter_headers, first["id"], first["candidates"][0])
    cast(client, voter_headers, second["id"], second["candidates"][0])

    response = client.get("/api/vote/status", headers=voter_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["has_voted"] is True
    titles = {entry["election"]["title"] for entry in body["votes"]}
    assert titles == {"E1", "E2"}
    assert all(entry["candidate"]["vote_count"] == 1 for entry in body["votes"])


def test_status_for_voter_without_ballots(client: TestClient, voter_headers) -> None:
    response = client.get("/api/vote/status", headers=voter_headers)
    assert response.json() == {"has_voted": False, "votes": []}


def test_end_to_end_scenario(client: TestClient, register, admin_headers) -> None:
    voter = {"Authorization": f"Bearer {register(name='A', email='a@x.com')['token']}"}

    created = client.post("/api/election", json={"title": "E1"}, headers=admin_headers)
    election_id = created.json()["election"]["id"]
    candidate = client.post(
        "/api/candidate",
        json={"name": "C1", "position": "Chair", "electionId": election_id},
        headers=admin_headers,
    )
    c1 = candidate.json()["candidate"]["id"]

    assert cast(client, voter, election_id, c1).status_code == 201
    assert vote_count(client, voter, c1) == 1

    assert cast(client, voter, election_id, c1).status_code == 409

    assert withdraw(client, voter, election_id).status_code == 200
    assert vote_count(client, voter, c1) == 0

    status = client.get("/api/vote/status", params={"electionId": election_id}, headers=voter)
    assert status.status_code == 200
    assert status.json()["has_voted"] is False
    assert status.json()["vote"] is None


def test_observers_hear_every_transition(
    client: TestClient, recorder, make_election, voter_headers
) -> None:
    election = make_election(title="Board", candidates=("Ann", "Bob"))
    ann, bob = election["candidates"]

    cast(client, voter_headers, election["id"], ann)
    client.patch(
        "/api/vote",
        json={"newCandidateId": bob, "electionId": election["id"]},
        headers=voter_headers,
    )
    withdraw(client, voter_headers, election["id"])

    assert [event.action for event in recorder.events] == ["cast", "change", "withdraw"]
    assert recorder.events[0].voter_name == "Vera Voter"
    assert recorder.events[0].candidate_name == "Ann"
    assert recorder.events[1].candidate_name == "Bob"
    assert recorder.events[0].election_title == "Board"


class _ExplodingObserver:
    def update(self, event) -> None:
        raise RuntimeError("disk full")


def _seed(store: FakeSupabaseClient) -> tuple[str, str]:
    election = store.insert("elections", {"title": "E", "is_open": True})[0]
    candidate = store.insert(
        "candidates", {"election_id": election["id"], "name": "C", "position": "P"}
    )[0]
    return election["id"], candidate["id"]


def test_failing_observer_does_not_fail_cast(store: FakeSupabaseClient, settings) -> None:
    election_id, candidate_id = _seed(store)
    service = VoteService(store, settings, observers=[_ExplodingObserver()])
    voter = CurrentUser(id="voter-1", name="V", role=Role.VOTER)

    result = service.cast(voter, candidate_id=candidate_id, election_id=election_id)

    assert result["candidate"]["vote_count"] == 1


def test_unique_index_rejects_racing_cast(store: FakeSupabaseClient, settings, monkeypatch) -> None:
    election_id, candidate_id = _seed(store)
    service = VoteService(store, settings)
    voter = CurrentUser(id="voter-1", name="V", role=Role.VOTER)
    service.cast(voter, candidate_id=candidate_id, election_id=election_id)

    # Simulate a concurrent request that passed the pre-check before the first insert.
    monkeypatch.setattr(service, "_ballot", lambda voter_id, election_id: None)

    with pytest.raises(ConflictError) as excinfo:
        service.cast(voter, candidate_id=candidate_id, election_id=election_id)

    assert excinfo.value.code == "ALREADY_VOTED"
    assert len(store.tables["votes"]) == 1


def test_add_observer_registers_on_manager(store: FakeSupabaseClient, settings, recorder) -> None:
    election_id, candidate_id = _seed(store)
    service = VoteService(store, settings)
    service.add_observer(recorder)

    service.cast(
        CurrentUser(id="voter-1", name="V", role=Role.VOTER),
        candidate_id=candidate_id,
        election_id=election_id,
    )

    assert len(recorder.events) == 1


def test_status_accepts_snake_case_election_id(client: TestClient, make_election, voter_headers) -> None:
    first = make_election(title="E1")
    second = make_election(title="E2")
    cast(client, voter_headers, second["id"], second["candidates"][0])

    for key in ("electionId", "election_id"):
        response = client.get("/api/vote/status", params={key: first["id"]}, headers=voter_headers)
        body = response.json()
        assert body["election"]["id"] == first["id"]
        assert body["has_voted"] is False
        assert body["vote"] is None


def test_vote_history_lists_every_ballot(client: TestClient, make_election, voter_headers) -> None:
    first = make_election(title="E1")
    second = make_election(title="E2")
    cast(client, voter_headers, first["id"], first["candidates"][0])
    cast(client, voter_headers, second["id"], second["candidates"][0])

    response = client.get("/api/vote", headers=voter_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["has_voted"] is True
    assert {entry["election"]["title"] for entry in body["votes"]} == {"E1", "E2"}


def test_vote_history_requires_token(client: TestClient) -> None:
    assert client.get("/api/vote").status_code == 401
