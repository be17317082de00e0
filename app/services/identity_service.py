"""
Identity service - users of the identity store

Creates and lists identities; token issuance stays with the identity
provider.
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import validate_email
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import ErrorCode, already_exists_error, validation_error
from app.core.security import hash_password
from app.db.writes import committing
from app.models.auth_user import AuthUser
from app.models.profile import Profile
from app.models.role import Role
from app.models.user_role import UserRole

logger = logging.getLogger(__name__)


def get_user(db: Session, user_id: str) -> Optional[AuthUser]:
    """Get an identity by id."""
    return db.query(AuthUser).filter(AuthUser.id == user_id).first()


def create_user(
    db: Session,
    email: str,
    password: str,
    email_confirm: bool = False,
) -> AuthUser:
    """
    Create an identity together with its empty profile.

    Email is treated as case-insensitive unique.
    """
    try:
        _, email = validate_email(email)
    except ValueError:
        raise validation_error("email", "Valid email is required", ErrorCode.INVALID_EMAIL)
    if not isinstance(password, str) or len(password) < settings.MIN_PASSWORD_LENGTH:
        raise validation_error(
            "password",
            f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters",
            ErrorCode.INVALID_PASSWORD,
        )

    normalized = email.strip().lower()
    existing = db.query(AuthUser).filter(func.lower(AuthUser.email) == normalized).first()
    if existing:
        raise already_exists_error("Email")

    user = AuthUser(
        email=normalized,
        password_hash=hash_password(password),
        email_confirmed_at=datetime.now(timezone.utc) if email_confirm else None,
    )
    user.profile = Profile()
    with committing(db):
        db.add(user)
    db.refresh(user)

    logger.info("Created user id=%s", user.id)
    return user


def user_to_dict(user: AuthUser) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "email_confirmed_at": user.email_confirmed_at,
        "created_at": user.created_at,
        "last_sign_in_at": user.last_sign_in_at,
    }


def list_users(db: Session) -> List[dict]:
    """List identities with their role (or None)."""
    rows = (
        db.query(AuthUser, Role)
        .outerjoin(UserRole, UserRole.user_id == AuthUser.id)
        .outerjoin(Role, Role.id == UserRole.role_id)
        .order_by(AuthUser.created_at.asc(), AuthUser.email.asc())
        .all()
    )
    users = []
    for user, role in rows:
        item = user_to_dict(user)
        item["role"] = {"id": role.id, "slug": role.slug, "label": role.label} if role else None
        users.append(item)
    return users
