"""Feedback submission and moderation."""

from __future__ import annotations

from typing import Any

from app.config import Settings
from app.services.common import SupabaseService, map_users_on_field
from app.utils.errors import NotFoundError
from supabase import Client


class FeedbackService:
    """Store user feedback and expose it to admins."""

    def __init__(self, client: Client, settings: Settings) -> None:
        self.db = SupabaseService(client, settings.slow_query_log_threshold_ms)

    def create(self, user_id: str, message: str) -> dict[str, Any]:
        """Store a feedback message."""
        return self.db.insert_one("feedback", {"user_id": user_id, "message": message})

    def list_all(self) -> list[dict[str, Any]]:
        """Return all feedback with author name and email, newest first."""
        rows = self.db.select_many("feedback", order_by="created_at", descending=True)
        users = self.db.get_users_map(row["user_id"] for row in rows)
        return map_users_on_field(rows, users)

    def list_for_user(self, user_id: str) -> list[dict[str, Any]]:
        """Return the caller's own feedback, newest first."""
        return self.db.select_many(
            "feedback",
            filters={"user_id": user_id},
            order_by="created_at",
            descending=True,
        )

    def delete(self, feedback_id: str) -> dict[str, Any]:
        """Delete one feedback entry."""
        rows = self.db.delete("feedback", {"id": feedback_id})
        if not rows:
            raise NotFoundError("Feedback")
        return rows[0]
