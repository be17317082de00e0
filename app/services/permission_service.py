"""
Effective permission resolution and the authorization gate

The effective mask for (user, page) is:
  1. the user's override for the page, when a row exists (even mask 0);
  2. otherwise the default of the user's role for the page;
  3. otherwise 0.

It is recomputed from the store on every check and never cached.
"""
import logging
from typing import List, Optional

from sqlalchemy import and_, case, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, aliased

from app.core.errors import ResolutionFailed, authentication_error, permission_error
from app.core.permissions import has, describe
from app.core.security import Identity
from app.models.page import Page
from app.models.role_page_perm import RolePagePerm
from app.models.user_page_perm import UserPagePerm
from app.models.user_role import UserRole

logger = logging.getLogger(__name__)


def effective_perms_query(user_id: str, granted_only: bool = False):
    """
    SELECT of (page_slug, page_label, perms_mask, source) for one user

    One statement over pages, so a single resolution reads one snapshot and
    never mixes an old override with a new role default. ``source`` is
    'user', 'role' or NULL when neither row exists.
    """
    override = aliased(UserPagePerm)
    assignment = aliased(UserRole)
    default = aliased(RolePagePerm)

    mask = func.coalesce(override.perms_mask, default.perms_mask, 0)
    source = case(
        (override.id.isnot(None), "user"),
        (default.id.isnot(None), "role"),
        else_=None,
    )

    stmt = (
        select(
            Page.slug.label("page_slug"),
            Page.label.label("page_label"),
            mask.label("perms_mask"),
            source.label("source"),
        )
        .select_from(Page)
        .outerjoin(override, and_(override.page_id == Page.id, override.user_id == user_id))
        .outerjoin(assignment, assignment.user_id == user_id)
        .outerjoin(default, and_(default.page_id == Page.id, default.role_id == assignment.role_id))
    )
    if granted_only:
        stmt = stmt.where((override.id.isnot(None)) | (default.id.isnot(None)))
    return stmt.order_by(Page.slug)


def resolve_effective_mask(db: Session, user_id: str, page_slug: str) -> int:
    """
    Effective mask for (user, page); an unknown page resolves to 0

    Raises:
        ResolutionFailed: the store could not be read
    """
    stmt = effective_perms_query(user_id).where(Page.slug == page_slug)
    try:
        row = db.execute(stmt).first()
    except SQLAlchemyError as exc:
        logger.error("Permission resolution failed for user=%s page=%s: %s", user_id, page_slug, exc)
        raise ResolutionFailed() from exc
    if row is None:
        return 0
    return int(row.perms_mask)


def list_effective_pages(db: Session, user_id: str) -> List[dict]:
    """Pages on which the user holds an override or a role default"""
    try:
        rows = db.execute(effective_perms_query(user_id, granted_only=True)).all()
    except SQLAlchemyError as exc:
        logger.error("Listing effective pages failed for user=%s: %s", user_id, exc)
        raise ResolutionFailed("Failed to fetch pages") from exc
    return [
        {
            "page_slug": row.page_slug,
            "page_label": row.page_label,
            "perms_mask": int(row.perms_mask),
            "capabilities": describe(row.perms_mask),
            "source": row.source,
        }
        for row in rows
    ]


def authorize(db: Session, identity: Optional[Identity], page_slug: str, required: int) -> int:
    """
    Gate a request on ``required`` bits of ``page_slug``

    Returns the effective mask when allowed. A denial does not reveal whether
    the page exists.

    Raises:
        AppError: 401 when there is no identity, 403 when bits are missing
        ResolutionFailed: the mask could not be resolved (never allows)
    """
    if identity is None:
        raise authentication_error("Unauthenticated")

    mask = resolve_effective_mask(db, identity.id, page_slug)
    if not has(mask, required):
        logger.info(
            "Denied user=%s page=%s required=%d effective=%d",
            identity.id, page_slug, int(required), mask,
        )
        raise permission_error("Forbidden")
    return mask
