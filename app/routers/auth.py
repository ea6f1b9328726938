"""Authentication endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from app.config import Settings
from app.dependencies import get_current_user, get_db_client, get_settings
from app.schemas.user import CurrentUser, LoginRequest, RegisterRequest, UserResponse
from app.services.auth_service import AuthService
from supabase import Client

router = APIRouter()


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterRequest,
    client: Client = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
) -> dict:
    """Create an account and return a token for it."""
    service = AuthService(client, settings)
    return service.register(
        name=payload.name,
        email=payload.email,
        password=payload.password,
        role=payload.role,
        admin_code=payload.admin_code,
    )


@router.post("/login")
def login(
    payload: LoginRequest,
    client: Client = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
) -> dict:
    """Verify credentials and return a token."""
    service = AuthService(client, settings)
    return service.login(email=payload.email, password=payload.password)


@router.get("/profile", response_model=UserResponse)
def profile(
    user: CurrentUser = Depends(get_current_user),
    client: Client = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
) -> dict:
    """Return the caller's profile."""
    return AuthService(client, settings).profile(user.id)
