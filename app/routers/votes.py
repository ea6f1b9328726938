"""Ballot endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from app.config import Settings
from app.dependencies import (
    ensure_permission,
    get_current_user,
    get_db_client,
    get_election_id,
    get_settings,
    get_vote_observers,
)
from app.schemas.user import CurrentUser
from app.schemas.vote import VoteCast, VoteChange, VoteWithdraw
from app.services.vote_observers import VoteObserver
from app.services.vote_service import VoteService
from app.utils.roles import Permission
from supabase import Client

router = APIRouter()


def get_vote_service(
    client: Client = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
    observers: list[VoteObserver] = Depends(get_vote_observers),
) -> VoteService:
    return VoteService(client, settings, observers=observers)


def get_voter(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    return ensure_permission(user, Permission.VOTE)


@router.post("", status_code=status.HTTP_201_CREATED)
def cast_vote(
    payload: VoteCast,
    user: CurrentUser = Depends(get_voter),
    service: VoteService = Depends(get_vote_service),
) -> dict:
    """Cast a ballot."""
    result = service.cast(user, candidate_id=payload.candidate_id, election_id=payload.election_id)
    return {"message": "Vote successfully cast", **result}


@router.get("")
def vote_history(
    user: CurrentUser = Depends(get_current_user),
    service: VoteService = Depends(get_vote_service),
) -> dict:
    """List every ballot the caller has cast."""
    return service.status(user)


@router.get("/status")
def vote_status(
    election_id: str | None = Depends(get_election_id),
    user: CurrentUser = Depends(get_current_user),
    service: VoteService = Depends(get_vote_service),
) -> dict:
    """Report the caller's ballot(s)."""
    return service.status(user, election_id=election_id)


@router.patch("")
def change_vote(
    payload: VoteChange,
    user: CurrentUser = Depends(get_voter),
    service: VoteService = Depends(get_vote_service),
) -> dict:
    """Move the caller's ballot to another candidate."""
    result = service.change(
        user, election_id=payload.election_id, new_candidate_id=payload.new_candidate_id
    )
    return {"message": "Vote updated successfully", **result}


@router.delete("")
def withdraw_vote(
    payload: VoteWithdraw,
    user: CurrentUser = Depends(get_voter),
    service: VoteService = Depends(get_vote_service),
) -> dict:
    """Withdraw the caller's ballot."""
    result = service.withdraw(user, election_id=payload.election_id)
    return {"message": "Vote withdrawn successfully", **result}
