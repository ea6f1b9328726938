"""User and authentication schemas."""

from pydantic import AliasChoices, BaseModel, Field, field_validator

from app.utils.roles import Permission, Role, has_permission
from app.utils.security import MAX_PASSWORD_BYTES


class RegisterRequest(BaseModel):
    """Request body for creating an account."""

    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=254)
    password: str = Field(..., min_length=6)
    role: Role = Field(Role.VOTER, validation_alias=AliasChoices("role", "type"))
    admin_code: str | None = Field(None, validation_alias=AliasChoices("admin_code", "adminCode"))

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Name is required")
        return value

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        value = value.strip().lower()
        local, _, domain = value.partition("@")
        if not local or "." not in domain:
            raise ValueError("A valid email address is required")
        return value

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
        return value


class LoginRequest(BaseModel):
    """Request body for signing in."""

    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class UserResponse(BaseModel):
    """Public user representation."""

    id: str
    name: str
    email: str
    role: Role


class CurrentUser(BaseModel):
    """Identity and role claims taken from a verified access token."""

    id: str
    name: str = ""
    role: Role

    def can(self, permission: Permission) -> bool:
        return has_permission(self.role, permission)
