"""Election creation, open/close toggling and removal."""

from __future__ import annotations

import logging
from typing import Any

from app.config import Settings
from app.services.common import SupabaseService, group_by
from app.utils.errors import NotFoundError
from app.utils.time import parse_timestamp
from supabase import Client

logger = logging.getLogger(__name__)


def order_candidate_refs(rows: list[dict[str, Any]]) -> list[str]:
    """Return candidate ids in insertion order."""
    ordered = sorted(rows, key=lambda row: (parse_timestamp(row.get("created_at")), str(row["id"])))
    return [str(row["id"]) for row in ordered]


class ElectionService:
    """Manage the election lifecycle."""

    def __init__(self, client: Client, settings: Settings) -> None:
        self.db = SupabaseService(client, settings.slow_query_log_threshold_ms)

    def _hydrate(self, elections: list[dict[str, Any]]) -> list[dict[str, Any]]:
        if not elections:
            return []
        candidates = self.db.select_many(
            "candidates",
            columns="id,election_id,created_at",
            in_filters={"election_id": [str(election["id"]) for election in elections]},
        )
        by_election = group_by(candidates, "election_id")

        hydrated: list[dict[str, Any]] = []
        for election in elections:
            payload = dict(election)
            payload["candidates"] = order_candidate_refs(by_election.get(str(election["id"]), []))
            payload["candidate_count"] = len(payload["candidates"])
            hydrated.append(payload)
        return hydrated

    def get(self, election_id: str) -> dict[str, Any]:
        """Return one election or raise NotFoundError."""
        return self.db.select_one("elections", {"id": election_id}, not_found_label="Election")

    def create(self, title: str, description: str = "") -> dict[str, Any]:
        """Create a new election; elections start open."""
        election = self.db.insert_one(
            "elections",
            {"title": title, "description": description, "is_open": True},
        )
        logger.info("Election %s created", election["id"])
        return self._hydrate([election])[0]

    def toggle(self, election_id: str, is_open: bool) -> dict[str, Any]:
        """Open or close an election."""
        rows = self.db.update("elections", {"id": election_id}, {"is_open": is_open})
        if not rows:
            raise NotFoundError("Election")
        logger.info("Election %s %s", election_id, "opened" if is_open else "closed")
        return self._hydrate(rows)[0]

    def list_elections(self) -> list[dict[str, Any]]:
        """Return all elections, newest first."""
        elections = self.db.select_many("elections", order_by="created_at", descending=True)
        return self._hydrate(elections)

    def delete(self, election_id: str) -> dict[str, Any]:
        """Delete an election together with its candidates and ballots."""
        election = self._hydrate([self.get(election_id)])[0]
        self.db.delete("votes", {"election_id": election_id})
        self.db.delete("candidates", {"election_id": election_id})
        self.db.delete("elections", {"id": election_id})
        logger.info("Election %s deleted", election_id)
        return election
