"""
Tests for default seeding and the admin bootstrap script
"""
import pytest

from app.db.init_db import DEFAULT_PAGES, seed_defaults
from app.models import Page, Role, RolePagePerm, UserRole
from app.schemas.admin import SetRolePageRequest
from app.services.admin_service import set_role_page
from app.services.permission_service import resolve_effective_mask
from app.tests.conftest import make_user, page_id, role_id
from scripts import seed_admin as seed_admin_script


def test_seed_defaults_is_idempotent(db):
    seed_defaults(db)
    seed_defaults(db)

    assert db.query(Page).count() == len(DEFAULT_PAGES)
    assert {r.slug for r in db.query(Role).all()} == {"admin", "viewer"}
    assert db.query(RolePagePerm).filter(RolePagePerm.role_id == role_id(db, "admin")).count() == len(DEFAULT_PAGES)


def test_seed_defaults_keeps_edited_defaults(seeded):
    row = (
        seeded.query(RolePagePerm)
        .filter(
            RolePagePerm.role_id == role_id(seeded, "viewer"),
            RolePagePerm.page_id == page_id(seeded, "reports"),
        )
        .one()
    )
    row.perms_mask = 6
    seeded.commit()

    seed_defaults(seeded)
    seeded.refresh(row)
    assert row.perms_mask == 6


def test_seed_defaults_keeps_removed_defaults(seeded):
    viewer = make_user(seeded, "viewer@example.com")
    seeded.add(UserRole(user_id=viewer.id, role_id=role_id(seeded, "viewer")))
    seeded.commit()
    set_role_page(seeded, SetRolePageRequest(role_slug="viewer", page_slug="reports", level="none"))
    set_role_page(seeded, SetRolePageRequest(role_slug="admin", page_slug="settings", level="none"))
    assert resolve_effective_mask(seeded, viewer.id, "reports") == 0

    # startup seeding runs again on every boot
    seed_defaults(seeded)

    assert resolve_effective_mask(seeded, viewer.id, "reports") == 0
    admin_pages = {
        pid for (pid,) in
        seeded.query(RolePagePerm.page_id).filter(RolePagePerm.role_id == role_id(seeded, "admin")).all()
    }
    assert page_id(seeded, "settings") not in admin_pages


def test_seed_defaults_grants_pages_created_later(seeded):
    seeded.delete(seeded.query(Page).filter(Page.slug == "reports").one())
    seeded.commit()

    seed_defaults(seeded)

    reports = page_id(seeded, "reports")
    masks = {
        role_slug: seeded.query(RolePagePerm.perms_mask).filter(
            RolePagePerm.role_id == role_id(seeded, role_slug),
            RolePagePerm.page_id == reports,
        ).scalar()
        for role_slug in ("admin", "viewer")
    }
    assert masks == {"admin": 15, "viewer": 2}


@pytest.fixture
def script_session(db, monkeypatch):
    """Point the script at the test session and keep it open"""
    monkeypatch.setattr(seed_admin_script, "SessionLocal", lambda: db)
    monkeypatch.setattr(db, "close", lambda: None)
    return db


def test_seed_admin_promotes_existing_user(script_session):
    user = make_user(script_session, "boss@example.com")

    assert seed_admin_script.seed_admin("Boss@Example.com") == 0
    assignment = script_session.query(UserRole).filter(UserRole.user_id == user.id).one()
    assert assignment.role_id == role_id(script_session, "admin")
    assert resolve_effective_mask(script_session, user.id, "settings") == 15


def test_seed_admin_unknown_user(script_session):
    assert seed_admin_script.seed_admin("nobody@example.com") == 1
