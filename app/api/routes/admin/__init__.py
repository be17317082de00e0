"""Admin API, gated on the 'settings' and 'users' pages."""
from fastapi import APIRouter
from app.api.routes.admin import permissions as admin_permissions
from app.api.routes.admin import profiles as admin_profiles
from app.api.routes.admin import users as admin_users

admin_router = APIRouter(prefix="/admin", tags=["admin"])
admin_router.include_router(admin_users.router, tags=["admin-users"])
admin_router.include_router(admin_permissions.router, tags=["admin-permissions"])
admin_router.include_router(admin_profiles.router, tags=["admin-profiles"])
