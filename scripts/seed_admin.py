"""
Assign the admin role to an existing identity

Usage:
    python -m scripts.seed_admin --email admin@example.com

The user must already exist in the identity store. Default pages and roles
are seeded first when missing.
"""
import argparse
import logging
import sys

from app.core.constants import ADMIN_ROLE_SLUG
from app.core.errors import AppError
from app.core.logging import setup_logging
from app.db.init_db import seed_defaults
from app.db.session import SessionLocal
from app.models.auth_user import AuthUser
from app.services.admin_service import assign_user_role

logger = logging.getLogger(__name__)


def seed_admin(email: str) -> int:
    db = SessionLocal()
    try:
        seed_defaults(db)

        user = db.query(AuthUser).filter(AuthUser.email == email.strip().lower()).first()
        if user is None:
            logger.error('User with email "%s" not found. Create the user first.', email)
            return 1

        result = assign_user_role(db, user.id, ADMIN_ROLE_SLUG)
        if "warning" in result:
            logger.warning(result["warning"])
            return 1

        logger.info(
            "User %s (%s) is now an admin with %d page permissions",
            email, user.id, result["permissions_copied"],
        )
        return 0
    except AppError as e:
        logger.error("Failed to assign admin role: %s (%s)", e.message, e.code)
        return 1
    finally:
        db.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Assign the admin role to an existing user")
    parser.add_argument("--email", required=True, help="Email of the user to promote")
    args = parser.parse_args()

    setup_logging()
    sys.exit(seed_admin(args.email))


if __name__ == "__main__":
    main()
