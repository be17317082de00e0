"""
Profile service
"""
from typing import List

from sqlalchemy.orm import Session

from app.core.errors import not_found_error, validation_error
from app.db.writes import committing
from app.models.profile import Profile
from app.schemas.profile import ProfileUpdate


def get_profile(db: Session, user_id: str) -> Profile:
    profile = db.query(Profile).filter(Profile.id == user_id).first()
    if profile is None:
        raise not_found_error("Profile")
    return profile


def update_profile(db: Session, user_id: str, data: ProfileUpdate) -> Profile:
    """Write only the fields present in the request body."""
    updates = data.model_dump(exclude_unset=True)
    if not updates:
        raise validation_error("body", "No fields to update")

    profile = get_profile(db, user_id)
    with committing(db):
        for field, value in updates.items():
            setattr(profile, field, value)
    db.refresh(profile)
    return profile


def list_profiles(db: Session) -> List[Profile]:
    return db.query(Profile).order_by(Profile.full_name.asc(), Profile.id.asc()).all()
