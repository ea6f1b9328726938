"""Ballot casting, changing and withdrawal.

A ballot row in ``votes`` is the only record of who voted for whom. The
store enforces one row per (voter_id, election_id); the pre-check below
only exists to produce a friendlier error before the insert is attempted.
Candidate vote counts are read from the ``candidate_tallies`` view, so each
lifecycle operation is a single write and cannot leave counts out of sync.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from app.config import Settings
from app.schemas.user import CurrentUser
from app.services.candidate_service import (
    STATUS_ACTIVE,
    candidate_snapshot,
    fetch_vote_counts,
    with_vote_counts,
)
from app.services.common import SupabaseService
from app.services.vote_observers import VoteEvent, VoteObserver
from app.utils.errors import BadRequestError, ConflictError, NotFoundError
from app.utils.time import now_iso
from supabase import Client

logger = logging.getLogger(__name__)

ALREADY_VOTED = "You already voted in this election"


def election_summary(election: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": str(election["id"]),
        "title": election["title"],
        "description": election.get("description", ""),
        "is_open": election["is_open"],
    }


class VoteService:
    """Vote lifecycle manager enforcing one ballot per voter per election."""

    def __init__(
        self,
        client: Client,
        settings: Settings,
        observers: Iterable[VoteObserver] = (),
    ) -> None:
        self.db = SupabaseService(client, settings.slow_query_log_threshold_ms)
        self.observers: list[VoteObserver] = list(observers)

    def add_observer(self, observer: VoteObserver) -> None:
        self.observers.append(observer)

    def _notify(self, event: VoteEvent) -> None:
        for observer in self.observers:
            try:
                observer.update(event)
            except Exception:
                logger.exception(
                    "Vote observer %s failed for %s", type(observer).__name__, event.action
                )

    def _event(
        self,
        action: str,
        voter: CurrentUser,
        candidate: dict[str, Any],
        election: dict[str, Any],
    ) -> VoteEvent:
        return VoteEvent(
            action=action,
            voter_id=voter.id,
            voter_name=voter.name,
            candidate_id=str(candidate["id"]),
            candidate_name=candidate["name"],
            election_id=str(election["id"]),
            election_title=election["title"],
        )

    def _election(self, election_id: str) -> dict[str, Any]:
        return self.db.select_one("elections", {"id": election_id}, not_found_label="Election")

    def _ballot(self, voter_id: str, election_id: str) -> dict[str, Any] | None:
        return self.db.select_first("votes", {"voter_id": voter_id, "election_id": election_id})

    def _candidate_in(self, candidate_id: str, election_id: str) -> dict[str, Any] | None:
        return self.db.select_first("candidates", {"id": candidate_id, "election_id": election_id})

    @staticmethod
    def _ensure_open(election: dict[str, Any]) -> None:
        if not election.get("is_open"):
            raise ConflictError("Election is closed", code="ELECTION_CLOSED")

    @staticmethod
    def _ensure_active(candidate: dict[str, Any]) -> None:
        if candidate.get("status") != STATUS_ACTIVE:
            raise ConflictError("Candidate has withdrawn", code="CANDIDATE_WITHDRAWN")

    def cast(self, voter: CurrentUser, candidate_id: str, election_id: str) -> dict[str, Any]:
        """Record a new ballot for ``voter`` in ``election_id``."""
        election = self._election(election_id)
        self._ensure_open(election)

        candidate = self._candidate_in(candidate_id, election_id)
        if candidate is None:
            raise NotFoundError("Candidate for this election")
        self._ensure_active(candidate)

        if self._ballot(voter.id, election_id):
            raise ConflictError(ALREADY_VOTED, code="ALREADY_VOTED")

        try:
            ballot = self.db.insert_one(
                "votes",
                {
                    "voter_id": voter.id,
                    "candidate_id": candidate_id,
                    "election_id": election_id,
                },
            )
        except ConflictError as exc:
            # Lost a race with a concurrent cast; the unique index decided.
            raise ConflictError(ALREADY_VOTED, code="ALREADY_VOTED") from exc

        self._notify(self._event("cast", voter, candidate, election))
        return {
            "candidate": candidate_snapshot(self.db, candidate),
            "vote": ballot,
        }

    def change(
        self, voter: CurrentUser, election_id: str, new_candidate_id: str
    ) -> dict[str, Any]:
        """Point an existing ballot at a different candidate."""
        election = self._election(election_id)
        ballot = self._ballot(voter.id, election_id)
        if ballot is None:
            raise NotFoundError("Vote")
        self._ensure_open(election)

        candidate = self._candidate_in(new_candidate_id, election_id)
        if candidate is None:
            raise BadRequestError("Candidate does not belong to this election")
        self._ensure_active(candidate)

        previous_id = str(ballot["candidate_id"])
        rows = self.db.update(
            "votes",
            {"id": ballot["id"]},
            {"candidate_id": new_candidate_id, "updated_at": now_iso()},
        )
        if not rows:
            raise NotFoundError("Vote")

        previous = self.db.select_first("candidates", {"id": previous_id})
        self._notify(self._event("change", voter, candidate, election))
        return {
            "previous_candidate": candidate_snapshot(self.db, previous) if previous else None,
            "candidate": candidate_snapshot(self.db, candidate),
            "vote": rows[0],
        }

    def withdraw(self, voter: CurrentUser, election_id: str) -> dict[str, Any]:
        """Remove the voter's ballot while the election is still open."""
        election = self._election(election_id)
        ballot = self._ballot(voter.id, election_id)
        if ballot is None:
            raise NotFoundError("Vote")
        self._ensure_open(election)

        self.db.delete("votes", {"id": ballot["id"]})

        candidate = self.db.select_first("candidates", {"id": ballot["candidate_id"]})
        snapshot = candidate_snapshot(self.db, candidate) if candidate else None
        if candidate:
            self._notify(self._event("withdraw", voter, candidate, election))
        return {"candidate": snapshot, "vote": ballot}

    def status(self, voter: CurrentUser, election_id: str | None = None) -> dict[str, Any]:
        """Report the caller's ballot in one election, or all of their ballots."""
        if election_id:
            election = self._election(election_id)
            ballot = self._ballot(voter.id, election_id)
            candidate = None
            if ballot:
                row = self.db.select_first("candidates", {"id": ballot["candidate_id"]})
                candidate = candidate_snapshot(self.db, row) if row else None
            return {
                "election": election_summary(election),
                "has_voted": ballot is not None,
                "vote": ballot,
                "candidate": candidate,
            }

        ballots = self.db.select_many(
            "votes",
            filters={"voter_id": voter.id},
            order_by="created_at",
            descending=True,
        )
        candidate_ids = {str(ballot["candidate_id"]) for ballot in ballots}
        election_ids = {str(ballot["election_id"]) for ballot in ballots}

        candidates: dict[str, dict[str, Any]] = {}
        elections: dict[str, dict[str, Any]] = {}
        if ballots:
            rows = self.db.select_many("candidates", in_filters={"id": candidate_ids})
            counts = fetch_vote_counts(self.db, candidate_ids=candidate_ids)
            candidates = {str(row["id"]): row for row in with_vote_counts(rows, counts)}
            elections = {
                str(row["id"]): election_summary(row)
                for row in self.db.select_many("elections", in_filters={"id": election_ids})
            }

        return {
            "has_voted": bool(ballots),
            "votes": [
                {
                    "vote": ballot,
                    "candidate": candidates.get(str(ballot["candidate_id"])),
                    "election": elections.get(str(ballot["election_id"])),
                }
                for ballot in ballots
            ],
        }
