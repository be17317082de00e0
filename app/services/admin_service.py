"""
Role/permission administration

Single-item operations touch one row. ``set_role_pages`` validates the whole
batch before writing anything. Role creation and role assignment are
multi-step workflows: each step commits on its own and a failed later step
is reported as a warning next to a success, never rolled back.
"""
import logging
from typing import Callable, Dict, List, Optional

from fastapi import status
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import AppError, ErrorCode, already_exists_error, not_found_error, validation_error
from app.core.permissions import Level, level_to_mask
from app.db.writes import committing, upsert
from app.models.page import Page
from app.models.role import Role
from app.models.role_page_perm import RolePagePerm
from app.models.user_page_perm import UserPagePerm
from app.models.user_role import UserRole
from app.schemas.admin import (
    CreateRoleRequest,
    SetRolePageRequest,
    SetRolePagesRequest,
    SetUserPageRequest,
)
from app.services.identity_service import create_user, get_user, user_to_dict
from app.utils.validation import ensure_uuid, is_valid_slug

logger = logging.getLogger(__name__)


def get_role_by_slug(db: Session, slug: str) -> Optional[Role]:
    return db.query(Role).filter(Role.slug == slug).first()


def get_page_by_slug(db: Session, slug: str) -> Optional[Page]:
    return db.query(Page).filter(Page.slug == slug).first()


def page_ids_by_slug(db: Session, slugs: List[str]) -> Dict[str, int]:
    if not slugs:
        return {}
    rows = db.execute(select(Page.slug, Page.id).where(Page.slug.in_(set(slugs)))).all()
    return {slug: page_id for slug, page_id in rows}


def role_to_dict(role: Role) -> dict:
    return {"id": role.id, "slug": role.slug, "label": role.label}


def _require_role(db: Session, slug: str) -> Role:
    role = get_role_by_slug(db, slug)
    if role is None:
        raise validation_error("role_slug", f'Role "{slug}" not found')
    return role


def _attempt(db: Session, step: str, action: Callable[[], None]) -> Optional[str]:
    """Run and commit one workflow step; return the step name if it failed"""
    try:
        action()
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("Workflow step '%s' failed: %s", step, exc)
        return step
    return None


def create_role(db: Session, data: CreateRoleRequest) -> dict:
    """
    Create a role, then seed its page defaults.

    The role insert commits first. Seeding problems are reported in
    ``warning`` and leave the role in place.
    """
    if not is_valid_slug(data.slug):
        raise validation_error(
            "slug",
            "Slug must be lowercase alphanumeric with underscores or hyphens only",
            ErrorCode.INVALID_SLUG,
        )
    if get_role_by_slug(db, data.slug) is not None:
        raise already_exists_error(f'Role with slug "{data.slug}"')

    role = Role(slug=data.slug, label=data.label)
    with committing(db):
        db.add(role)
    db.refresh(role)
    logger.info("Created role %s (id=%s)", role.slug, role.id)

    seeds = data.permissions or []
    result = {
        "role": role_to_dict(role),
        "permissions_assigned": 0,
        "permissions": [p.model_dump(mode="json") for p in seeds],
    }
    if not seeds:
        return result

    try:
        page_map = page_ids_by_slug(db, [p.page_slug for p in seeds])
    except SQLAlchemyError as exc:
        logger.warning("Role %s created but pages could not be validated: %s", role.slug, exc)
        result["warning"] = "Role created but failed to validate pages"
        return result

    invalid = [p.page_slug for p in seeds if p.page_slug not in page_map]
    if invalid:
        logger.warning("Role %s created with invalid pages: %s", role.slug, invalid)
        result["warning"] = f"Role created but some pages are invalid: {', '.join(invalid)}"
        return result

    # later entries for the same page win
    masks = {page_map[p.page_slug]: level_to_mask(p.level) for p in seeds}
    rows = [{"role_id": role.id, "page_id": page_id, "perms_mask": mask} for page_id, mask in masks.items()]

    failed = _attempt(
        db,
        "seed_permissions",
        lambda: upsert(db, RolePagePerm, rows, ["role_id", "page_id"], ["perms_mask"]),
    )
    if failed:
        result["warning"] = "Role created but failed to assign permissions"
        return result

    result["permissions_assigned"] = len(rows)
    return result


def set_user_page(db: Session, data: SetUserPageRequest) -> dict:
    """Set or remove a user's override on one page."""
    user_id = ensure_uuid(data.user_id)
    page = get_page_by_slug(db, data.page_slug)
    if page is None:
        raise validation_error("page_slug", "Invalid page_slug")

    mask = level_to_mask(data.level)
    with committing(db):
        if mask is None:
            db.execute(
                delete(UserPagePerm).where(
                    UserPagePerm.user_id == user_id,
                    UserPagePerm.page_id == page.id,
                )
            )
        else:
            upsert(
                db,
                UserPagePerm,
                [{"user_id": user_id, "page_id": page.id, "perms_mask": mask}],
                ["user_id", "page_id"],
                ["perms_mask"],
            )

    if mask is None:
        return {"ok": True, "level": Level.NONE.value}
    return {"ok": True, "level": data.level.value, "perms_mask": mask}


def set_role_page(db: Session, data: SetRolePageRequest) -> dict:
    """Set or remove a role's default on one page."""
    role = _require_role(db, data.role_slug)
    page = get_page_by_slug(db, data.page_slug)
    if page is None:
        raise validation_error("page_slug", f'Page "{data.page_slug}" not found')

    mask = level_to_mask(data.level)
    with committing(db):
        if mask is None:
            db.execute(
                delete(RolePagePerm).where(
                    RolePagePerm.role_id == role.id,
                    RolePagePerm.page_id == page.id,
                )
            )
        else:
            upsert(
                db,
                RolePagePerm,
                [{"role_id": role.id, "page_id": page.id, "perms_mask": mask}],
                ["role_id", "page_id"],
                ["perms_mask"],
            )

    if mask is None:
        return {"ok": True, "level": Level.NONE.value}
    return {"ok": True, "level": data.level.value, "perms_mask": mask}


def set_role_pages(db: Session, data: SetRolePagesRequest) -> dict:
    """
    Set a role's defaults on several pages at once.

    Every page slug is checked before any write; one unknown slug rejects
    the whole batch and leaves the role untouched.
    """
    role = _require_role(db, data.role_slug)

    slugs = [p.page_slug for p in data.permissions]
    page_map = page_ids_by_slug(db, slugs)
    invalid = list(dict.fromkeys(s for s in slugs if s not in page_map))
    if invalid:
        raise AppError(
            ErrorCode.INVALID_INPUT,
            f"Invalid page slugs: {', '.join(invalid)}",
            status.HTTP_400_BAD_REQUEST,
            {"invalid_pages": invalid},
        )

    # later entries for the same page win
    masks = {page_map[p.page_slug]: level_to_mask(p.level) for p in data.permissions}
    to_delete = [page_id for page_id, mask in masks.items() if mask is None]
    to_upsert = [
        {"role_id": role.id, "page_id": page_id, "perms_mask": mask}
        for page_id, mask in masks.items()
        if mask is not None
    ]

    with committing(db):
        if to_delete:
            db.execute(
                delete(RolePagePerm).where(
                    RolePagePerm.role_id == role.id,
                    RolePagePerm.page_id.in_(to_delete),
                )
            )
        upsert(db, RolePagePerm, to_upsert, ["role_id", "page_id"], ["perms_mask"])

    logger.info(
        "Role %s pages updated: set=%d removed=%d",
        role.slug, len(to_upsert), len(to_delete),
    )
    return {
        "ok": True,
        "role_slug": role.slug,
        "permissions_set": len(to_upsert),
        "permissions_removed": len(to_delete),
        "details": [
            {
                "page_slug": p.page_slug,
                "level": p.level.value,
                "perms_mask": level_to_mask(p.level) or 0,
            }
            for p in data.permissions
        ],
    }


def assign_user_role(db: Session, user_id: str, role_slug: str) -> dict:
    """
    Give a user a role and materialize the role's current page defaults.

    Steps, each committed on its own:
      1. upsert the user's role (failure is an error);
      2. delete every page override of the user;
      3. copy each of the role's page defaults into the user's overrides.
    A failure in step 2 or 3 is returned as ``warning``. Later edits of the
    role's defaults do not reach the copied rows.
    """
    user_id = ensure_uuid(user_id)
    role = _require_role(db, role_slug)
    if get_user(db, user_id) is None:
        raise not_found_error("User")

    with committing(db):
        upsert(
            db,
            UserRole,
            [{"user_id": user_id, "role_id": role.id}],
            ["user_id"],
            ["role_id"],
        )

    result = {"ok": True, "user_id": user_id, "role_slug": role.slug, "permissions_copied": 0}

    failed = _attempt(
        db,
        "clear_overrides",
        lambda: db.execute(delete(UserPagePerm).where(UserPagePerm.user_id == user_id)),
    )
    if failed:
        result["warning"] = "Role assigned but existing page permissions could not be cleared"
        return result

    defaults = db.execute(
        select(RolePagePerm.page_id, RolePagePerm.perms_mask).where(RolePagePerm.role_id == role.id)
    ).all()
    rows = [{"user_id": user_id, "page_id": page_id, "perms_mask": mask} for page_id, mask in defaults]

    failed = _attempt(
        db,
        "copy_role_permissions",
        lambda: upsert(db, UserPagePerm, rows, ["user_id", "page_id"], ["perms_mask"]),
    )
    if failed:
        result["warning"] = "Role assigned but role permissions could not be copied"
        return result

    result["permissions_copied"] = len(rows)
    logger.info("Assigned role %s to user %s (%d pages)", role.slug, user_id, len(rows))
    return result


def list_roles(db: Session) -> List[dict]:
    """Roles ordered by slug, each with its page defaults."""
    roles = db.query(Role).order_by(Role.slug.asc()).all()
    perms = db.execute(
        select(RolePagePerm.role_id, Page.slug, Page.label, RolePagePerm.perms_mask)
        .join(Page, Page.id == RolePagePerm.page_id)
        .order_by(Page.slug.asc())
    ).all()

    by_role: Dict[int, List[dict]] = {}
    for role_id, page_slug, page_label, mask in perms:
        by_role.setdefault(role_id, []).append(
            {"page_slug": page_slug, "page_label": page_label, "perms_mask": mask}
        )

    return [
        {**role_to_dict(role), "permissions": by_role.get(role.id, [])}
        for role in roles
    ]


def create_user_with_role(
    db: Session,
    email: str,
    password: str,
    email_confirm: bool = False,
    role_slug: Optional[str] = None,
) -> dict:
    """
    Create an identity and, when ``role_slug`` is given, assign that role.

    The role is checked before the user is created. A failed assignment
    after creation is reported as ``warning``; the user is kept.
    """
    if role_slug is not None:
        _require_role(db, role_slug)

    user = create_user(db, email, password, email_confirm)
    result = {"user": user_to_dict(user), "role_assigned": False, "role_slug": None}
    if role_slug is None:
        return result

    try:
        assignment = assign_user_role(db, user.id, role_slug)
    except AppError as exc:
        logger.warning("User %s created but role assignment failed: %s", user.id, exc.message)
        result["warning"] = "User created but role assignment failed. Please assign role manually."
        return result

    result["role_assigned"] = True
    result["role_slug"] = role_slug
    result["permissions_copied"] = assignment["permissions_copied"]
    if "warning" in assignment:
        result["warning"] = assignment["warning"]
    return result
