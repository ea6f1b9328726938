"""FastAPI dependency injection helpers."""

from __future__ import annotations

from fastapi import Depends, Header, Query, Request

from app.config import Settings
from app.schemas.user import CurrentUser
from app.services.vote_observers import VoteObserver
from app.utils.errors import ForbiddenError, UnauthorizedError
from app.utils.roles import Permission, parse_role
from app.utils.security import decode_access_token
from app.utils.supabase_client import create_service_client
from supabase import Client


def get_settings(request: Request) -> Settings:
    """Return the settings the application was built with."""
    return request.app.state.settings


def get_db_client(request: Request) -> Client:
    """Return the service-role Supabase client, creating it on first use."""
    state = request.app.state
    if state.db_client is None:
        state.db_client = create_service_client(state.settings)
    return state.db_client


def get_vote_observers(request: Request) -> list[VoteObserver]:
    """Return the observers registered at startup."""
    return request.app.state.vote_observers


def get_current_user(
    authorization: str = Header(None),
    settings: Settings = Depends(get_settings),
) -> CurrentUser:
    """Extract and validate the bearer token from the Authorization header.

    Raises:
        UnauthorizedError: 401 if the header is missing, malformed, or
            the token is expired or badly signed.
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise UnauthorizedError("No token provided")

    token = authorization.split(" ", 1)[1].strip()
    claims = decode_access_token(token, settings.jwt_secret, settings.jwt_algorithm)

    role = parse_role(claims.get("role"))
    if role is None:
        raise UnauthorizedError("Invalid token")
    return CurrentUser(id=str(claims["sub"]), name=str(claims.get("name") or ""), role=role)


def ensure_permission(user: CurrentUser, permission: Permission) -> CurrentUser:
    """Reject callers whose role does not grant ``permission``.

    Called first thing in every admin-only handler.
    """
    if not user.can(permission):
        raise ForbiddenError("Access denied. Admins only.")
    return user


def get_election_id(
    camel: str | None = Query(None, alias="electionId"),
    snake: str | None = Query(None, alias="election_id"),
) -> str | None:
    """Read the election id query parameter in either spelling."""
    return camel or snake
