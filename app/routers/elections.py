"""Election endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from app.config import Settings
from app.dependencies import ensure_permission, get_current_user, get_db_client, get_settings
from app.schemas.election import ElectionCreate, ElectionToggle
from app.schemas.user import CurrentUser
from app.services.election_service import ElectionService
from app.utils.roles import Permission
from supabase import Client

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
def create_election(
    payload: ElectionCreate,
    user: CurrentUser = Depends(get_current_user),
    client: Client = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
) -> dict:
    """Create a new election."""
    ensure_permission(user, Permission.MANAGE_ELECTIONS)
    election = ElectionService(client, settings).create(
        title=payload.title, description=payload.description
    )
    return {"message": "Election created", "election": election}


@router.put("/toggle")
def toggle_election(
    payload: ElectionToggle,
    user: CurrentUser = Depends(get_current_user),
    client: Client = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
) -> dict:
    """Open or close an election."""
    ensure_permission(user, Permission.MANAGE_ELECTIONS)
    election = ElectionService(client, settings).toggle(payload.election_id, payload.is_open)
    return {
        "message": f"Election {'opened' if election['is_open'] else 'closed'}",
        "election": election,
    }


@router.get("")
def list_elections(
    user: CurrentUser = Depends(get_current_user),
    client: Client = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
) -> dict:
    """List elections, newest first."""
    elections = ElectionService(client, settings).list_elections()
    return {
        "message": "Elections retrieved successfully",
        "count": len(elections),
        "elections": elections,
    }


@router.delete("/{election_id}")
def delete_election(
    election_id: str,
    user: CurrentUser = Depends(get_current_user),
    client: Client = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
) -> dict:
    """Delete an election with its candidates and ballots."""
    ensure_permission(user, Permission.MANAGE_ELECTIONS)
    election = ElectionService(client, settings).delete(election_id)
    return {"message": "Election deleted", "election": election}
