"""
Role catalogue for any authenticated user
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.deps import get_db, get_current_identity
from app.core.security import Identity
from app.services.admin_service import list_roles

router = APIRouter()


@router.get("/userrole")
def list_user_roles_endpoint(
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Roles with their page masks, without page labels"""
    roles = [
        {
            "id": role["id"],
            "slug": role["slug"],
            "label": role["label"],
            "page_permissions": [
                {"page_slug": p["page_slug"], "perms_mask": p["perms_mask"]}
                for p in role["permissions"]
            ],
        }
        for role in list_roles(db)
    ]
    return {"roles": roles}
