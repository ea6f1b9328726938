"""Tallies, exports, turnout and historical winners."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from app.config import Settings
from app.services.candidate_service import fetch_vote_counts, with_vote_counts
from app.services.common import SupabaseService
from app.utils.errors import BadRequestError, NotFoundError
from app.utils.exporters import render_csv, render_pdf
from app.utils.time import parse_timestamp
from supabase import Client

DEFAULT_METHOD = "vote"
EXPORT_TYPES = ("json", "csv", "pdf")

Sorter = Callable[[list[dict[str, Any]]], list[dict[str, Any]]]


def _created(row: dict[str, Any]):
    return parse_timestamp(row.get("created_at"))


def sort_by_votes(candidates: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Most votes first; ties go to the earlier candidate, then by id."""
    return sorted(
        candidates,
        key=lambda row: (-int(row.get("vote_count") or 0), _created(row), str(row["id"])),
    )


def sort_by_name(candidates: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Case-insensitive alphabetical order."""
    return sorted(
        candidates,
        key=lambda row: (str(row.get("name", "")).casefold(), str(row.get("name", "")), str(row["id"])),
    )


def sort_by_latest(candidates: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Newest candidates first."""
    by_id = sorted(candidates, key=lambda row: str(row["id"]))
    return sorted(by_id, key=_created, reverse=True)


SORTERS: dict[str, Sorter] = {
    "vote": sort_by_votes,
    "name": sort_by_name,
    "latest": sort_by_latest,
}


def resolve_method(method: str | None) -> str:
    """Return a known sort method name, defaulting to ``vote``."""
    return method if method in SORTERS else DEFAULT_METHOD


def pick_winner(candidates: list[dict[str, Any]]) -> dict[str, Any] | None:
    """Return the candidate with the most votes; the first seen wins ties."""
    winner: dict[str, Any] | None = None
    for candidate in candidates:
        if winner is None or candidate["vote_count"] > winner["vote_count"]:
            winner = candidate
    return winner


def turnout_percentage(votes_cast: int, eligible: int) -> float:
    """Ballots cast over registered users as a percentage, 0 when nobody is registered."""
    if eligible <= 0:
        return 0.0
    return round(votes_cast / eligible * 100, 2)


@dataclass(frozen=True)
class ExportFile:
    content: bytes | str
    media_type: str
    filename: str


class ResultService:
    """Read-only views over candidate tallies."""

    def __init__(self, client: Client, settings: Settings) -> None:
        self.db = SupabaseService(client, settings.slow_query_log_threshold_ms)

    def _tally(self, election_id: str | None) -> list[dict[str, Any]]:
        if not election_id:
            raise BadRequestError("Election ID is required")
        self.db.select_one("elections", {"id": election_id}, not_found_label="Election")

        candidates = self.db.select_many(
            "candidates", filters={"election_id": election_id}, order_by="created_at"
        )
        if not candidates:
            raise NotFoundError("Candidates for this election")
        counts = fetch_vote_counts(self.db, election_id=election_id)
        return with_vote_counts(candidates, counts)

    def results(self, election_id: str | None, method: str | None = None) -> dict[str, Any]:
        """Return the election's candidates ordered by ``method``."""
        method_name = resolve_method(method)
        ordered = SORTERS[method_name](self._tally(election_id))
        return {"election_id": election_id, "method": method_name, "results": ordered}

    def export(
        self,
        election_id: str | None,
        method: str | None = None,
        export_type: str | None = None,
    ) -> dict[str, Any] | ExportFile:
        """Render results as JSON (a dict), CSV or PDF."""
        kind = (export_type or "json").lower()
        if kind not in EXPORT_TYPES:
            raise BadRequestError(f"Unsupported export type: {export_type}")

        payload = self.results(election_id, method)
        if kind == "csv":
            return ExportFile(
                content=render_csv(payload["results"]),
                media_type="text/csv",
                filename=f"results_{election_id}.csv",
            )
        if kind == "pdf":
            return ExportFile(
                content=render_pdf(f"Election Results ({election_id})", payload["results"]),
                media_type="application/pdf",
                filename=f"results_{election_id}.pdf",
            )
        return payload

    def stats(self, election_id: str | None) -> dict[str, Any]:
        """Turnout for one election against all registered users."""
        if not election_id:
            raise BadRequestError("Election ID is required")
        self.db.select_one("elections", {"id": election_id}, not_found_label="Election")

        votes_cast = self.db.count("votes", {"election_id": election_id})
        eligible = self.db.count("users")
        return {
            "election_id": election_id,
            "eligible_voters": eligible,
            "total_votes_cast": votes_cast,
            "turnout_percentage": turnout_percentage(votes_cast, eligible),
        }

    def history(self) -> list[dict[str, Any]]:
        """Winner summary for every election."""
        elections = self.db.select_many("elections", order_by="created_at")
        if not elections:
            return []

        candidates = self.db.select_many(
            "candidates",
            in_filters={"election_id": [str(election["id"]) for election in elections]},
        )
        counts = fetch_vote_counts(self.db, candidate_ids=[row["id"] for row in candidates])
        candidates = with_vote_counts(candidates, counts)

        summaries: list[dict[str, Any]] = []
        for election in elections:
            own = [row for row in candidates if str(row["election_id"]) == str(election["id"])]
            own.sort(key=lambda row: (_created(row), str(row["id"])))
            winner = pick_winner(own)
            summaries.append(
                {
                    "election_id": str(election["id"]),
                    "title": election["title"],
                    "description": election.get("description", ""),
                    "is_open": election["is_open"],
                    "winner": (
                        {
                            "candidate_id": str(winner["id"]),
                            "name": winner["name"],
                            "vote_count": winner["vote_count"],
                        }
                        if winner
                        else None
                    ),
                }
            )
        return summaries
