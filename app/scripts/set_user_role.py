"""
Set User Role Script
Assigns 'admin' or 'user' to an account directly in user_roles, bypassing the API.
Used to bootstrap the first admin or to repair a role the signup trigger missed.
Requires SUPABASE_SERVICE_ROLE_KEY.

Usage: python -m app.scripts.set_user_role <email-or-user-id> [admin|user]
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from app.config import settings
from app.database.supabase_client import get_service_supabase
from supabase import Client
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

VALID_ROLES = ("admin", "user")


def find_user_id(supabase: Client, identifier: str) -> str:
    """Accept a user id as-is, or look the email up through the Auth admin API"""
    if "@" not in identifier:
        return identifier
    page = 1
    while True:
        users = supabase.auth.admin.list_users(page=page, per_page=100)
        if not users:
            break
        for user in users:
            if (user.email or "").lower() == identifier.lower():
                return user.id
        page += 1
    raise LookupError(f"No user with email {identifier}")


def set_role(supabase: Client, user_id: str, role: str) -> None:
    existing = supabase.table("user_roles")\
        .select("role")\
        .eq("user_id", user_id)\
        .execute()

    if existing.data and existing.data[0]["role"] == role:
        logger.info(f"User {user_id} already has role {role}")
        return

    supabase.table("user_roles")\
        .upsert({"user_id": user_id, "role": role}, on_conflict="user_id")\
        .execute()
    logger.info(f"User {user_id} role set to {role}")


def main(argv=None):
    """Main function to assign a role"""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args or len(args) > 2:
        logger.error("Usage: python -m app.scripts.set_user_role <email-or-user-id> [admin|user]")
        sys.exit(2)
    role = args[1] if len(args) == 2 else "admin"
    if role not in VALID_ROLES:
        logger.error(f"Role must be one of {', '.join(VALID_ROLES)}")
        sys.exit(2)
    if not settings.supabase_service_role_key:
        logger.error("SUPABASE_SERVICE_ROLE_KEY is required to change roles")
        sys.exit(1)

    try:
        supabase = get_service_supabase()
        user_id = find_user_id(supabase, args[0])
        set_role(supabase, user_id, role)
    except Exception as e:
        logger.error(f"Error setting role: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
