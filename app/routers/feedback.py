"""Feedback endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from app.config import Settings
from app.dependencies import ensure_permission, get_current_user, get_db_client, get_settings
from app.schemas.feedback import FeedbackCreate
from app.schemas.user import CurrentUser
from app.services.feedback_service import FeedbackService
from app.utils.roles import Permission
from supabase import Client

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
def add_feedback(
    payload: FeedbackCreate,
    user: CurrentUser = Depends(get_current_user),
    client: Client = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
) -> dict:
    """Submit feedback."""
    feedback = FeedbackService(client, settings).create(user.id, payload.message)
    return {"message": "Feedback submitted successfully", "feedback": feedback}


@router.get("")
def list_feedback(
    user: CurrentUser = Depends(get_current_user),
    client: Client = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
) -> dict:
    """List all feedback (admin)."""
    ensure_permission(user, Permission.MODERATE_FEEDBACK)
    feedbacks = FeedbackService(client, settings).list_all()
    return {"count": len(feedbacks), "feedbacks": feedbacks}


@router.get("/mine")
def my_feedback(
    user: CurrentUser = Depends(get_current_user),
    client: Client = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
) -> dict:
    """List the caller's own feedback."""
    feedbacks = FeedbackService(client, settings).list_for_user(user.id)
    return {"count": len(feedbacks), "feedbacks": feedbacks}


@router.delete("/{feedback_id}")
def delete_feedback(
    feedback_id: str,
    user: CurrentUser = Depends(get_current_user),
    client: Client = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
) -> dict:
    """Delete a feedback entry (admin)."""
    ensure_permission(user, Permission.MODERATE_FEEDBACK)
    feedback = FeedbackService(client, settings).delete(feedback_id)
    return {"message": "Feedback deleted", "feedback": feedback}
