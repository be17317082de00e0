"""
Database models
"""
from app.models.auth_user import AuthUser
from app.models.profile import Profile
from app.models.role import Role
from app.models.page import Page
from app.models.role_page_perm import RolePagePerm
from app.models.user_role import UserRole
from app.models.user_page_perm import UserPagePerm

__all__ = [
    "AuthUser",
    "Profile",
    "Role",
    "Page",
    "RolePagePerm",
    "UserRole",
    "UserPagePerm",
]
