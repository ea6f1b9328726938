"""Create an administrator account directly in Supabase."""

from __future__ import annotations

import argparse
import getpass
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def parse_args() -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(
        description="Create an Admin user in public.users.",
    )
    parser.add_argument("email", type=str, help="Login email of the new admin.")
    parser.add_argument("--name", type=str, default="Administrator", help="Display name.")
    parser.add_argument(
        "--password",
        type=str,
        default=None,
        help="Password (prompted for when omitted).",
    )
    return parser.parse_args()


def create_admin(email: str, name: str, password: str) -> dict:
    """Insert an Admin user and return its public fields."""
    if len(password) < 6:
        raise ValueError("password must be at least 6 characters")

    from app.config import load_settings
    from app.services.auth_service import AuthService, public_user
    from app.utils.roles import Role
    from app.utils.security import hash_password
    from app.utils.supabase_client import create_service_client

    settings = load_settings()
    service = AuthService(create_service_client(settings), settings)
    user = service.db.insert_one(
        "users",
        {
            "name": name,
            "email": email.strip().lower(),
            "password_hash": hash_password(password, settings.bcrypt_rounds),
            "role": Role.ADMIN.value,
        },
        conflict_message="Email already registered",
    )
    return public_user(user)


def main() -> None:
    """CLI entry point."""
    args = parse_args()
    password = args.password or getpass.getpass("Password: ")
    user = create_admin(email=args.email, name=args.name, password=password)
    print(f"Created admin {user['email']} ({user['id']})")


if __name__ == "__main__":
    main()
