"""
Profile administration endpoints (gated on the 'users' page)
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.constants import USERS_PAGE
from app.core.deps import get_db, require_perm
from app.core.permissions import Perm
from app.core.security import Identity
from app.schemas.profile import ProfileListResponse, ProfileResponse, ProfileUpdate
from app.services.profile_service import get_profile, list_profiles, update_profile
from app.utils.validation import ensure_uuid

router = APIRouter()


@router.get("/profile/{user_id}", response_model=ProfileResponse)
def get_profile_endpoint(
    user_id: str,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_perm(USERS_PAGE, Perm.R)),
):
    return {"profile": get_profile(db, ensure_uuid(user_id))}


@router.put("/profile/{user_id}", response_model=ProfileResponse)
def update_profile_endpoint(
    user_id: str,
    profile_data: ProfileUpdate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_perm(USERS_PAGE, Perm.U)),
):
    return {"profile": update_profile(db, ensure_uuid(user_id), profile_data)}


@router.get("/profiles", response_model=ProfileListResponse)
def list_profiles_endpoint(
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_perm(USERS_PAGE, Perm.R)),
):
    return {"profiles": list_profiles(db)}
