"""
Current user's profile (authentication only)
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.deps import get_db, get_current_identity
from app.core.security import Identity
from app.schemas.profile import ProfileResponse, ProfileUpdate
from app.services.profile_service import get_profile, update_profile

router = APIRouter()


@router.get("/me", response_model=ProfileResponse)
def get_my_profile_endpoint(
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    return {"profile": get_profile(db, identity.id)}


@router.put("/me", response_model=ProfileResponse)
def update_my_profile_endpoint(
    profile_data: ProfileUpdate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    return {"profile": update_profile(db, identity.id, profile_data)}
