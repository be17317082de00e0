"""
Pages visible to the current user (authentication only)
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.deps import get_db, get_current_identity
from app.core.security import Identity
from app.services.permission_service import list_effective_pages

router = APIRouter()


@router.get("/my-pages")
def my_pages_endpoint(
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Effective mask of every page the caller holds a grant on"""
    return {"pages": list_effective_pages(db, identity.id)}
