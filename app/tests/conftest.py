"""
Pytest configuration and fixtures
"""
import os
import time

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("IDENTITY_JWT_SECRET", "test-identity-secret")
os.environ.setdefault("APP_ENV", "local")

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlalchemy.engine import Engine
from app.main import app
from app.db.base import Base
from app.db.init_db import seed_defaults
from app.core.config import settings
from app.core.deps import get_db
from app.models import AuthUser, Profile, Role, Page, RolePagePerm, UserRole, UserPagePerm  # noqa: F401
from app.services.admin_service import assign_user_role


# Use in-memory SQLite for testing
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# Enable foreign keys for SQLite
@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    """Test client fixture with database override"""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def seeded(db):
    """Default pages plus the admin and viewer roles"""
    seed_defaults(db)
    return db


def make_user(db, email, full_name=None):
    """Insert an identity with its profile"""
    user = AuthUser(email=email, password_hash="not-used")
    user.profile = Profile(full_name=full_name)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_token(user_id, expires_in=3600, audience=None, secret=None):
    """Token shaped like the identity provider's access tokens"""
    now = int(time.time())
    payload = {
        "sub": user_id,
        "aud": audience or settings.IDENTITY_JWT_AUDIENCE,
        "iat": now,
        "exp": now + expires_in,
        "role": "authenticated",
    }
    return jwt.encode(
        payload,
        secret or settings.IDENTITY_JWT_SECRET,
        algorithm=settings.IDENTITY_JWT_ALGORITHM,
    )


def auth_headers(user):
    return {"Authorization": f"Bearer {make_token(user.id)}"}


def page_id(db, slug):
    return db.query(Page).filter(Page.slug == slug).one().id


def role_id(db, slug):
    return db.query(Role).filter(Role.slug == slug).one().id


@pytest.fixture
def admin_user(seeded):
    """User holding the admin role, with the role's pages materialized"""
    user = make_user(seeded, "admin@example.com", "Admin User")
    assign_user_role(seeded, user.id, "admin")
    return user


@pytest.fixture
def plain_user(seeded):
    """Authenticated user with no role and no overrides"""
    return make_user(seeded, "plain@example.com", "Plain User")
