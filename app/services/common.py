"""Shared Supabase data access helpers."""

from __future__ import annotations

import logging
import time
from collections import defaultdict
from collections.abc import Iterable
from typing import Any

from postgrest import APIError

from app.utils.errors import BadRequestError, ConflictError, NotFoundError, StoreError
from supabase import Client

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"
INVALID_TEXT_REPRESENTATION = "22P02"


def is_unique_violation(exc: APIError) -> bool:
    """Return True when a write failed on a unique index."""
    message = str(getattr(exc, "message", "")).lower()
    code = str(getattr(exc, "code", "")).lower()
    return "duplicate key value" in message or code == UNIQUE_VIOLATION


def translate_api_error(exc: APIError, conflict_message: str = "Duplicate record") -> Exception:
    """Map a PostgREST error onto the API error taxonomy."""
    code = str(getattr(exc, "code", "") or "")
    if is_unique_violation(exc):
        return ConflictError(conflict_message)
    if code == INVALID_TEXT_REPRESENTATION:
        return BadRequestError("Invalid ID format")
    if code == FOREIGN_KEY_VIOLATION:
        return NotFoundError("Referenced record")
    logger.error("Supabase request failed code=%s message=%s", code, getattr(exc, "message", ""))
    return StoreError()


class SupabaseService:
    """Thin helper wrapper around a Supabase client."""

    def __init__(self, client: Client, slow_query_threshold_ms: int = 0) -> None:
        self.client = client
        self.slow_query_threshold_ms = slow_query_threshold_ms

    def execute_response(self, query, conflict_message: str = "Duplicate record") -> Any:
        """Execute a query and return the raw response (data + count)."""
        started = time.perf_counter()
        try:
            response = query.execute()
        except APIError as exc:
            raise translate_api_error(exc, conflict_message) from exc
        elapsed_ms = (time.perf_counter() - started) * 1000
        if self.slow_query_threshold_ms > 0 and elapsed_ms >= self.slow_query_threshold_ms:
            logger.warning("Slow Supabase query %.1fms", elapsed_ms)
        return response

    def execute(self, query, default: Any = None, conflict_message: str = "Duplicate record") -> Any:
        """Execute a Supabase query and normalize API errors."""
        data = self.execute_response(query, conflict_message).data
        return default if data is None and default is not None else data

    def select_one(
        self,
        table: str,
        filters: dict[str, Any],
        columns: str = "*",
        not_found_label: str | None = None,
    ) -> dict[str, Any]:
        """Select a single row and raise NotFoundError when missing."""
        query = self.client.table(table).select(columns)
        for key, value in filters.items():
            query = query.eq(key, value)
        rows = self.execute(query.limit(1), default=[])
        if not rows:
            label = not_found_label or table
            raise NotFoundError(label)
        return rows[0]

    def select_first(
        self,
        table: str,
        filters: dict[str, Any],
        columns: str = "*",
    ) -> dict[str, Any] | None:
        """Select a single row or None."""
        rows = self.select_many(table, filters=filters, columns=columns, limit=1)
        return rows[0] if rows else None

    def select_many(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        columns: str = "*",
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
        offset: int | None = None,
        in_filters: dict[str, Iterable[Any]] | None = None,
    ) -> list[dict[str, Any]]:
        """Select many rows from a table with optional filters and paging."""
        query = self.client.table(table).select(columns)
        if filters:
            for key, value in filters.items():
                query = query.eq(key, value)
        if in_filters:
            for key, values in in_filters.items():
                query = query.in_(key, list(values))
        if order_by:
            query = query.order(order_by, desc=descending)
        if offset:
            query = query.offset(offset)
        if limit:
            query = query.limit(limit)
        return self.execute(query, default=[])

    def count(self, table: str, filters: dict[str, Any] | None = None) -> int:
        """Count rows in a table with optional equality filters."""
        query = self.client.table(table).select("*", count="exact", head=True)
        if filters:
            for key, value in filters.items():
                query = query.eq(key, value)
        response = self.execute_response(query)
        return response.count or 0

    def insert_one(
        self,
        table: str,
        payload: dict[str, Any],
        conflict_message: str = "Duplicate record",
    ) -> dict[str, Any]:
        """Insert one row and return the created object."""
        rows = self.execute(
            self.client.table(table).insert(payload),
            default=[],
            conflict_message=conflict_message,
        )
        if not rows:
            raise StoreError(f"Failed to insert into {table}")
        return rows[0]

    def update(
        self,
        table: str,
        filters: dict[str, Any],
        payload: dict[str, Any],
    ) -> list[dict[str, Any]]:
        """Update rows by equality filters and return the updated rows."""
        query = self.client.table(table).update(payload)
        for key, value in filters.items():
            query = query.eq(key, value)
        return self.execute(query, default=[])

    def delete(self, table: str, filters: dict[str, Any]) -> list[dict[str, Any]]:
        """Delete rows by equality filters and return removed rows."""
        query = self.client.table(table).delete()
        for key, value in filters.items():
            query = query.eq(key, value)
        return self.execute(query, default=[])

    def get_user(self, user_id: str) -> dict[str, Any]:
        """Return a user record."""
        return self.select_one("users", {"id": user_id}, not_found_label="User")

    def get_users_map(self, user_ids: Iterable[str]) -> dict[str, dict[str, Any]]:
        """Fetch multiple users (without password hashes) keyed by id."""
        ids = list({str(uid) for uid in user_ids})
        if not ids:
            return {}

        rows = self.select_many(
            "users",
            columns="id,name,email,role",
            in_filters={"id": ids},
        )
        return {str(row["id"]): dict(row) for row in rows}


def map_users_on_field(
    rows: list[dict[str, Any]],
    users: dict[str, dict[str, Any]],
    user_key: str = "user_id",
    out_key: str = "user",
) -> list[dict[str, Any]]:
    """Attach user records to rows based on ``user_key``."""
    enriched: list[dict[str, Any]] = []
    for row in rows:
        payload = dict(row)
        payload[out_key] = users.get(str(row[user_key]))
        enriched.append(payload)
    return enriched


def group_by(rows: list[dict[str, Any]], key: str) -> dict[str, list[dict[str, Any]]]:
    """Group rows by an arbitrary key."""
    grouped: dict[str, list[dict[str, Any]]] = defaultdict(list)
    for row in rows:
        grouped[str(row[key])].append(row)
    return grouped
