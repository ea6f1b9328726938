"""Candidate management and tally lookups."""

from __future__ import annotations

import math
import re
from collections.abc import Iterable
from typing import Any

from app.config import Settings
from app.schemas.user import CurrentUser
from app.services.common import SupabaseService
from app.utils.errors import ConflictError, ForbiddenError, NotFoundError
from app.utils.roles import Permission
from supabase import Client

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 50
STATUS_ACTIVE = "active"

# Characters with meaning inside a PostgREST or=(...) filter.
_SEARCH_RESERVED = re.compile(r"[,()*%\\]")


def fetch_vote_counts(
    db: SupabaseService,
    candidate_ids: Iterable[str] | None = None,
    election_id: str | None = None,
) -> dict[str, int]:
    """Return ballot counts per candidate from the ``candidate_tallies`` view."""
    filters = {"election_id": election_id} if election_id else None
    in_filters = None
    if candidate_ids is not None:
        ids = sorted({str(cid) for cid in candidate_ids})
        if not ids:
            return {}
        in_filters = {"candidate_id": ids}

    rows = db.select_many(
        "candidate_tallies",
        filters=filters,
        columns="candidate_id,vote_count",
        in_filters=in_filters,
    )
    return {str(row["candidate_id"]): int(row["vote_count"] or 0) for row in rows}


def with_vote_counts(
    candidates: list[dict[str, Any]],
    counts: dict[str, int],
) -> list[dict[str, Any]]:
    """Attach derived ``vote_count`` values to candidate rows."""
    enriched: list[dict[str, Any]] = []
    for candidate in candidates:
        payload = dict(candidate)
        payload["vote_count"] = counts.get(str(candidate["id"]), 0)
        enriched.append(payload)
    return enriched


def candidate_snapshot(db: SupabaseService, candidate: dict[str, Any]) -> dict[str, Any]:
    """Return one candidate row with its current vote count."""
    counts = fetch_vote_counts(db, candidate_ids=[str(candidate["id"])])
    return with_vote_counts([candidate], counts)[0]


def clamp_page(page: int | None, limit: int | None) -> tuple[int, int]:
    """Normalize pagination input to ``page >= 1`` and ``1 <= limit <= 50``."""
    page_num = max(1 if page is None else page, 1)
    limit_num = DEFAULT_PAGE_SIZE if limit is None else limit
    limit_num = min(max(limit_num, 1), MAX_PAGE_SIZE)
    return page_num, limit_num


class CandidateService:
    """Create, browse, update and remove candidates."""

    def __init__(self, client: Client, settings: Settings) -> None:
        self.db = SupabaseService(client, settings.slow_query_log_threshold_ms)

    def create(
        self,
        election_id: str,
        name: str,
        position: str,
        manifesto: str = "",
        photo_url: str | None = None,
    ) -> dict[str, Any]:
        """Add a candidate to an open election."""
        election = self.db.select_one("elections", {"id": election_id}, not_found_label="Election")
        if not election.get("is_open"):
            raise ConflictError(
                "Cannot add candidate to a closed election", code="ELECTION_CLOSED"
            )

        candidate = self.db.insert_one(
            "candidates",
            {
                "election_id": election_id,
                "name": name,
                "position": position,
                "manifesto": manifesto,
                "photo_url": photo_url,
                "status": STATUS_ACTIVE,
            },
        )
        payload = with_vote_counts([candidate], {})[0]
        payload["election"] = {
            "id": str(election["id"]),
            "title": election["title"],
            "is_open": election["is_open"],
        }
        return payload

    def list_candidates(
        self,
        viewer: CurrentUser,
        q: str = "",
        status: str | None = None,
        page: int | None = 1,
        limit: int | None = DEFAULT_PAGE_SIZE,
        election_id: str | None = None,
    ) -> dict[str, Any]:
        """Search and paginate candidates, newest first.

        Voters only ever see active candidates; the ``status`` filter is
        honoured for admins only.
        """
        page_num, limit_num = clamp_page(page, limit)
        query = self.db.client.table("candidates").select("*", count="exact")

        if not viewer.can(Permission.VIEW_WITHDRAWN_CANDIDATES):
            query = query.eq("status", STATUS_ACTIVE)
        elif status:
            query = query.eq("status", status)

        if election_id:
            query = query.eq("election_id", election_id)

        term = _SEARCH_RESERVED.sub(" ", q or "").strip()
        if term:
            query = query.or_(f"name.ilike.%{term}%,position.ilike.%{term}%")

        skip = (page_num - 1) * limit_num
        query = query.order("created_at", desc=True).range(skip, skip + limit_num - 1)
        response = self.db.execute_response(query)
        rows = response.data or []
        total = response.count or 0

        counts = fetch_vote_counts(self.db, candidate_ids=[row["id"] for row in rows])
        return {
            "items": with_vote_counts(rows, counts),
            "total": total,
            "page": page_num,
            "pages": math.ceil(total / limit_num),
        }

    def get(self, candidate_id: str, viewer: CurrentUser) -> dict[str, Any]:
        """Fetch one candidate; withdrawn candidates are visible to admins only."""
        candidate = self.db.select_one(
            "candidates", {"id": candidate_id}, not_found_label="Candidate"
        )
        hidden = candidate.get("status") != STATUS_ACTIVE
        if hidden and not viewer.can(Permission.VIEW_WITHDRAWN_CANDIDATES):
            raise ForbiddenError("Not authorized to view this candidate")
        return candidate_snapshot(self.db, candidate)

    def update(self, candidate_id: str, changes: dict[str, Any]) -> dict[str, Any]:
        """Apply a partial update to a candidate."""
        candidate = self.db.select_one(
            "candidates", {"id": candidate_id}, not_found_label="Candidate"
        )
        if changes:
            rows = self.db.update("candidates", {"id": candidate_id}, changes)
            if not rows:
                raise NotFoundError("Candidate")
            candidate = rows[0]
        return candidate_snapshot(self.db, candidate)

    def delete(self, candidate_id: str) -> dict[str, Any]:
        """Delete a candidate and the ballots that reference it."""
        candidate = self.db.select_one(
            "candidates", {"id": candidate_id}, not_found_label="Candidate"
        )
        snapshot = candidate_snapshot(self.db, candidate)
        self.db.delete("votes", {"candidate_id": candidate_id})
        self.db.delete("candidates", {"id": candidate_id})
        return snapshot
