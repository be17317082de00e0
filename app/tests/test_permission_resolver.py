"""
Tests for effective permission resolution and the authorization gate
"""
import pytest
from sqlalchemy.exc import OperationalError

from app.core.errors import AppError, ErrorCode, ResolutionFailed
from app.core.permissions import Perm
from app.core.security import Identity
from app.models import RolePagePerm, UserPagePerm, UserRole
from app.services.permission_service import authorize, list_effective_pages, resolve_effective_mask
from app.tests.conftest import make_user, page_id, role_id


@pytest.fixture
def viewer(seeded):
    """User with the viewer role and no overrides (live role lookup)"""
    user = make_user(seeded, "viewer@example.com")
    seeded.add(UserRole(user_id=user.id, role_id=role_id(seeded, "viewer")))
    seeded.commit()
    seeded.refresh(user)
    return user


def _override(db, user, page_slug, mask):
    db.add(UserPagePerm(user_id=user.id, page_id=page_id(db, page_slug), perms_mask=mask))
    db.commit()


def test_role_default_applies_without_override(seeded, viewer):
    assert resolve_effective_mask(seeded, viewer.id, "reports") == int(Perm.R)


def test_override_replaces_role_default(seeded, viewer):
    _override(seeded, viewer, "reports", int(Perm.R | Perm.U))
    assert resolve_effective_mask(seeded, viewer.id, "reports") == 6


def test_override_is_not_merged_with_role_default(seeded, viewer):
    # role grants READ; override grants only UPDATE
    _override(seeded, viewer, "reports", int(Perm.U))
    assert resolve_effective_mask(seeded, viewer.id, "reports") == int(Perm.U)


def test_zero_override_wins_over_role_default(seeded, viewer):
    _override(seeded, viewer, "reports", 0)
    assert resolve_effective_mask(seeded, viewer.id, "reports") == 0


def test_override_applies_without_role(seeded, plain_user):
    _override(seeded, plain_user, "settings", 15)
    assert resolve_effective_mask(seeded, plain_user.id, "settings") == 15


def test_no_rows_resolves_to_zero(seeded, viewer, plain_user):
    assert resolve_effective_mask(seeded, viewer.id, "settings") == 0
    assert resolve_effective_mask(seeded, plain_user.id, "reports") == 0


def test_unknown_page_resolves_to_zero(seeded, viewer):
    assert resolve_effective_mask(seeded, viewer.id, "no-such-page") == 0


def test_unknown_user_resolves_to_zero(seeded):
    assert resolve_effective_mask(seeded, "00000000-0000-0000-0000-000000000000", "reports") == 0


def test_resolution_is_idempotent(seeded, viewer):
    first = resolve_effective_mask(seeded, viewer.id, "reports")
    second = resolve_effective_mask(seeded, viewer.id, "reports")
    assert first == second == int(Perm.R)


def test_role_default_edits_are_seen_live(seeded, viewer):
    row = (
        seeded.query(RolePagePerm)
        .filter(
            RolePagePerm.role_id == role_id(seeded, "viewer"),
            RolePagePerm.page_id == page_id(seeded, "reports"),
        )
        .one()
    )
    row.perms_mask = 15
    seeded.commit()
    assert resolve_effective_mask(seeded, viewer.id, "reports") == 15


def test_list_effective_pages(seeded, viewer):
    _override(seeded, viewer, "users", int(Perm.R))
    pages = {p["page_slug"]: p for p in list_effective_pages(seeded, viewer.id)}

    assert set(pages) == {"dashboard", "reports", "users"}
    assert pages["reports"]["source"] == "role"
    assert pages["users"]["source"] == "user"
    assert pages["users"]["capabilities"] == ["read"]


def test_list_effective_pages_empty_without_grants(seeded, plain_user):
    assert list_effective_pages(seeded, plain_user.id) == []


def test_authorize_allows_when_bits_present(seeded, viewer):
    identity = Identity(id=viewer.id, email=viewer.email)
    assert authorize(seeded, identity, "reports", Perm.R) == int(Perm.R)


def test_authorize_forbids_missing_bits(seeded, viewer):
    identity = Identity(id=viewer.id, email=viewer.email)
    with pytest.raises(AppError) as exc_info:
        authorize(seeded, identity, "reports", Perm.U)
    assert exc_info.value.status_code == 403
    assert exc_info.value.code == ErrorCode.INSUFFICIENT_PERMISSIONS


def test_authorize_unknown_page_is_plain_forbidden(seeded, viewer):
    identity = Identity(id=viewer.id, email=viewer.email)
    with pytest.raises(AppError) as unknown:
        authorize(seeded, identity, "no-such-page", Perm.R)
    with pytest.raises(AppError) as known:
        authorize(seeded, identity, "settings", Perm.R)
    assert unknown.value.to_dict() == known.value.to_dict()


def test_authorize_without_identity(seeded):
    with pytest.raises(AppError) as exc_info:
        authorize(seeded, None, "reports", Perm.R)
    assert exc_info.value.status_code == 401
    assert exc_info.value.code == ErrorCode.UNAUTHENTICATED


def test_store_failure_never_allows(seeded, viewer, monkeypatch):
    def unreachable(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection refused"))

    monkeypatch.setattr(seeded, "execute", unreachable)
    identity = Identity(id=viewer.id, email=viewer.email)

    with pytest.raises(ResolutionFailed) as exc_info:
        authorize(seeded, identity, "reports", Perm.R)
    assert exc_info.value.status_code == 503
    assert exc_info.value.code == ErrorCode.SERVICE_UNAVAILABLE
