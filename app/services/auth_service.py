"""Account registration, login and profile lookup."""

from __future__ import annotations

import hmac
import logging
from typing import Any

from app.config import Settings
from app.services.common import SupabaseService
from app.utils.errors import ConflictError, ForbiddenError, UnauthorizedError
from app.utils.roles import Role
from app.utils.security import create_access_token, hash_password, verify_password
from supabase import Client

logger = logging.getLogger(__name__)

EMAIL_TAKEN = "Email already registered"


def public_user(row: dict[str, Any]) -> dict[str, Any]:
    """Strip credential fields from a user row."""
    return {
        "id": str(row["id"]),
        "name": row["name"],
        "email": row["email"],
        "role": row["role"],
    }


class AuthService:
    """Credential store access and token issuance."""

    def __init__(self, client: Client, settings: Settings) -> None:
        self.db = SupabaseService(client, settings.slow_query_log_threshold_ms)
        self.settings = settings

    def _issue_token(self, user: dict[str, Any]) -> str:
        return create_access_token(
            user_id=str(user["id"]),
            role=user["role"],
            name=user["name"],
            secret=self.settings.jwt_secret,
            algorithm=self.settings.jwt_algorithm,
            expires_minutes=self.settings.access_token_expire_minutes,
        )

    def _ensure_admin_code(self, admin_code: str | None) -> None:
        expected = self.settings.admin_signup_code
        if not expected:
            raise ForbiddenError("Admin registration is disabled")
        if not admin_code or not hmac.compare_digest(admin_code, expected):
            raise ForbiddenError("Invalid admin registration code")

    def register(
        self,
        name: str,
        email: str,
        password: str,
        role: Role = Role.VOTER,
        admin_code: str | None = None,
    ) -> dict[str, Any]:
        """Create a user and return a fresh token for it."""
        if role is Role.ADMIN:
            self._ensure_admin_code(admin_code)

        if self.db.select_first("users", {"email": email}, columns="id"):
            raise ConflictError(EMAIL_TAKEN, code="EMAIL_TAKEN")

        user = self.db.insert_one(
            "users",
            {
                "name": name,
                "email": email,
                "password_hash": hash_password(password, self.settings.bcrypt_rounds),
                "role": role.value,
            },
            conflict_message=EMAIL_TAKEN,
        )
        logger.info("Registered %s user %s", user["role"], user["id"])
        return {
            "message": "User registered successfully",
            "role": user["role"],
            "token": self._issue_token(user),
            "user": public_user(user),
        }

    def login(self, email: str, password: str) -> dict[str, Any]:
        """Verify credentials and issue a token."""
        user = self.db.select_first("users", {"email": email})
        if not user or not verify_password(password, user.get("password_hash") or ""):
            raise UnauthorizedError("Invalid credentials")

        return {
            "message": "Login successful",
            "user": public_user(user),
            "token": self._issue_token(user),
        }

    def profile(self, user_id: str) -> dict[str, Any]:
        """Return the caller's stored profile."""
        return public_user(self.db.get_user(user_id))
