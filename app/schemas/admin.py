"""
Administration request schemas

One explicit schema per operation; services only ever see these.
"""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.core.permissions import Level


class _Request(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")


class PagePermission(_Request):
    """A (page, level) pair; level 'none' removes the grant"""
    page_slug: str = Field(..., min_length=1, description="Slug of an existing page")
    level: Level = Field(..., description="view, admin or none")


class RolePermissionSeed(PagePermission):
    """Permission seeded at role creation; 'none' is meaningless there"""

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: Level) -> Level:
        if v == Level.NONE:
            raise ValueError('Invalid level "none". Must be: view or admin')
        return v


class CreateUserRequest(_Request):
    email: EmailStr = Field(..., description="Email of the new identity")
    password: str = Field(..., description="Initial password")
    email_confirm: bool = Field(default=False, description="Mark the email as confirmed")
    role_slug: Optional[str] = Field(default=None, description="Role to assign after creation")


class CreateRoleRequest(_Request):
    slug: str = Field(..., min_length=1, description="Lowercase alphanumeric, '_' or '-'")
    label: str = Field(..., min_length=1, description="Human readable name")
    permissions: Optional[List[RolePermissionSeed]] = Field(
        default=None,
        description="Page defaults created together with the role",
    )


class SetUserPageRequest(_Request):
    user_id: str = Field(..., description="Identity id (UUID)")
    page_slug: str = Field(..., min_length=1)
    level: Level


class AssignAdminRequest(_Request):
    user_id: str = Field(..., description="Identity id (UUID)")


class SetRolePagesRequest(_Request):
    role_slug: str = Field(..., min_length=1)
    permissions: List[PagePermission] = Field(..., min_length=1, description="Applied all-or-nothing")


class SetRolePageRequest(_Request):
    role_slug: str = Field(..., min_length=1)
    page_slug: str = Field(..., min_length=1)
    level: Level


class UpdateUserRoleRequest(_Request):
    user_id: str = Field(..., description="Identity id (UUID)")
    role_slug: str = Field(..., min_length=1)
