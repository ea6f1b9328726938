"""Candidate endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from app.config import Settings
from app.dependencies import (
    ensure_permission,
    get_current_user,
    get_db_client,
    get_election_id,
    get_settings,
)
from app.schemas.candidate import CandidateCreate, CandidateUpdate
from app.schemas.user import CurrentUser
from app.services.candidate_service import DEFAULT_PAGE_SIZE, CandidateService
from app.utils.roles import Permission
from supabase import Client

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
def add_candidate(
    payload: CandidateCreate,
    user: CurrentUser = Depends(get_current_user),
    client: Client = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
) -> dict:
    """Add a candidate to an open election."""
    ensure_permission(user, Permission.MANAGE_CANDIDATES)
    candidate = CandidateService(client, settings).create(
        election_id=payload.election_id,
        name=payload.name,
        position=payload.position,
        manifesto=payload.manifesto,
        photo_url=payload.photo_url,
    )
    return {"message": "Candidate added successfully", "candidate": candidate}


@router.get("")
def list_candidates(
    q: str = "",
    status_filter: str | None = Query(None, alias="status"),
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    election_id: str | None = Depends(get_election_id),
    user: CurrentUser = Depends(get_current_user),
    client: Client = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
) -> dict:
    """Search and paginate candidates."""
    return CandidateService(client, settings).list_candidates(
        viewer=user,
        q=q,
        status=status_filter,
        page=page,
        limit=limit,
        election_id=election_id,
    )


@router.get("/{candidate_id}")
def get_candidate(
    candidate_id: str,
    user: CurrentUser = Depends(get_current_user),
    client: Client = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
) -> dict:
    """Fetch one candidate."""
    return {"candidate": CandidateService(client, settings).get(candidate_id, viewer=user)}


@router.put("/{candidate_id}")
def update_candidate(
    candidate_id: str,
    payload: CandidateUpdate,
    user: CurrentUser = Depends(get_current_user),
    client: Client = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
) -> dict:
    """Update candidate fields."""
    ensure_permission(user, Permission.MANAGE_CANDIDATES)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    candidate = CandidateService(client, settings).update(candidate_id, changes)
    return {"message": "Candidate updated successfully", "candidate": candidate}


@router.delete("/{candidate_id}")
def delete_candidate(
    candidate_id: str,
    user: CurrentUser = Depends(get_current_user),
    client: Client = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
) -> dict:
    """Delete a candidate and detach it from its election."""
    ensure_permission(user, Permission.MANAGE_CANDIDATES)
    candidate = CandidateService(client, settings).delete(candidate_id)
    return {"message": "Candidate deleted successfully", "candidate": candidate}
