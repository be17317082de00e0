"""
User administration endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.constants import ADMIN_ROLE_SLUG, SETTINGS_PAGE, USERS_PAGE
from app.core.deps import get_db, require_perm
from app.core.permissions import Perm
from app.core.security import Identity
from app.schemas.admin import AssignAdminRequest, CreateUserRequest, UpdateUserRoleRequest
from app.services.admin_service import assign_user_role, create_user_with_role
from app.services.identity_service import list_users

router = APIRouter()


@router.post("/create-user", status_code=201)
def create_user_endpoint(
    user_data: CreateUserRequest,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_perm(SETTINGS_PAGE, Perm.U)),
):
    """Create an identity, optionally with a role"""
    return create_user_with_role(
        db,
        email=user_data.email,
        password=user_data.password,
        email_confirm=user_data.email_confirm,
        role_slug=user_data.role_slug,
    )


@router.post("/assign-admin")
def assign_admin_endpoint(
    payload: AssignAdminRequest,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_perm(SETTINGS_PAGE, Perm.U)),
):
    """Promote a user to the admin role"""
    return assign_user_role(db, payload.user_id, ADMIN_ROLE_SLUG)


@router.post("/update-user-role")
def update_user_role_endpoint(
    payload: UpdateUserRoleRequest,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_perm(SETTINGS_PAGE, Perm.U)),
):
    """Change a user's role and replace their page permissions with the role's"""
    return assign_user_role(db, payload.user_id, payload.role_slug)


@router.get("/users")
def list_users_endpoint(
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_perm(USERS_PAGE, Perm.R)),
):
    return {"users": list_users(db)}
