"""
Role and page permission administration endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.constants import SETTINGS_PAGE
from app.core.deps import get_db, require_perm
from app.core.permissions import Perm
from app.core.security import Identity
from app.schemas.admin import (
    CreateRoleRequest,
    SetRolePageRequest,
    SetRolePagesRequest,
    SetUserPageRequest,
)
from app.services.admin_service import (
    create_role,
    list_roles,
    set_role_page,
    set_role_pages,
    set_user_page,
)

router = APIRouter()


@router.post("/create-role", status_code=201)
def create_role_endpoint(
    role_data: CreateRoleRequest,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_perm(SETTINGS_PAGE, Perm.U)),
):
    """Create a role, optionally seeding its page defaults"""
    return create_role(db, role_data)


@router.post("/set-user-page")
def set_user_page_endpoint(
    payload: SetUserPageRequest,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_perm(SETTINGS_PAGE, Perm.U)),
):
    return set_user_page(db, payload)


@router.post("/set-role-pages")
def set_role_pages_endpoint(
    payload: SetRolePagesRequest,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_perm(SETTINGS_PAGE, Perm.U)),
):
    """Set a role's defaults on several pages (all-or-nothing validation)"""
    return set_role_pages(db, payload)


@router.post("/set-role-page")
def set_role_page_endpoint(
    payload: SetRolePageRequest,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_perm(SETTINGS_PAGE, Perm.U)),
):
    return set_role_page(db, payload)


@router.get("/roles")
def list_roles_endpoint(
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_perm(SETTINGS_PAGE, Perm.R)),
):
    return {"roles": list_roles(db)}
