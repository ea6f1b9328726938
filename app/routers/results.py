"""Result, export, turnout and history endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from app.config import Settings
from app.dependencies import get_current_user, get_db_client, get_election_id, get_settings
from app.schemas.user import CurrentUser
from app.services.result_service import ExportFile, ResultService
from supabase import Client

router = APIRouter()


@router.get("")
def view_results(
    election_id: str | None = Depends(get_election_id),
    method: str | None = None,
    user: CurrentUser = Depends(get_current_user),
    client: Client = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    """Return sorted results for an election."""
    return ResultService(client, settings).results(election_id, method)


@router.post("/export")
def export_results(
    election_id: str | None = Depends(get_election_id),
    method: str | None = None,
    export_type: str | None = Query(None, alias="type"),
    user: CurrentUser = Depends(get_current_user),
    client: Client = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    """Export results as JSON, CSV or PDF."""
    exported = ResultService(client, settings).export(election_id, method, export_type)
    if isinstance(exported, ExportFile):
        return Response(
            content=exported.content,
            media_type=exported.media_type,
            headers={"Content-Disposition": f'attachment; filename="{exported.filename}"'},
        )
    return exported


@router.get("/stats")
def vote_stats(
    election_id: str | None = Depends(get_election_id),
    user: CurrentUser = Depends(get_current_user),
    client: Client = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
) -> dict:
    """Turnout statistics for an election."""
    return ResultService(client, settings).stats(election_id)


@router.get("/history")
def election_history(
    user: CurrentUser = Depends(get_current_user),
    client: Client = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
) -> dict:
    """Winner of every election."""
    return {"results": ResultService(client, settings).history()}
