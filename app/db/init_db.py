"""
Database seeding

Idempotently creates the default pages and roles the administration
surface depends on.
"""
import logging

from sqlalchemy.orm import Session

from app.core.constants import ADMIN_ROLE_SLUG, SETTINGS_PAGE, USERS_PAGE
from app.core.permissions import Perm
from app.db.writes import committing, upsert
from app.models.page import Page
from app.models.role import Role
from app.models.role_page_perm import RolePagePerm

logger = logging.getLogger(__name__)

DEFAULT_PAGES = [
    ("dashboard", "Dashboard"),
    ("reports", "Reports"),
    (USERS_PAGE, "Users"),
    (SETTINGS_PAGE, "Settings"),
]

# role slug -> (label, {page slug: mask}); None means every default page
DEFAULT_ROLES = {
    ADMIN_ROLE_SLUG: ("Administrator", None),
    "viewer": ("Viewer", {"dashboard": int(Perm.R), "reports": int(Perm.R)}),
}


def seed_defaults(db: Session) -> None:
    """
    Create missing default pages and roles.

    Existing rows are left alone. A role's page defaults are written only
    for a role or page created in this run, so a default removed through
    administration is not brought back.
    """
    pages = {page.slug: page for page in db.query(Page).all()}
    new_pages = set()
    new_roles = set()
    with committing(db):
        for slug, label in DEFAULT_PAGES:
            if slug not in pages:
                page = Page(slug=slug, label=label)
                db.add(page)
                pages[slug] = page
                new_pages.add(slug)
                logger.info("Created page: %s", slug)

        roles = {role.slug: role for role in db.query(Role).all()}
        for slug, (label, _) in DEFAULT_ROLES.items():
            if slug not in roles:
                role = Role(slug=slug, label=label)
                db.add(role)
                roles[slug] = role
                new_roles.add(slug)
                logger.info("Created role: %s", slug)
        db.flush()

        for slug, (_, grants) in DEFAULT_ROLES.items():
            role = roles[slug]
            if grants is None:
                grants = {page_slug: int(Perm.ALL) for page_slug, _ in DEFAULT_PAGES}
            rows = [
                {"role_id": role.id, "page_id": pages[page_slug].id, "perms_mask": mask}
                for page_slug, mask in grants.items()
                if slug in new_roles or page_slug in new_pages
            ]
            upsert(db, RolePagePerm, rows, ["role_id", "page_id"], ["perms_mask"])
