"""
Dependencies and guards for FastAPI endpoints
"""
from typing import Generator, Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from app.db.session import SessionLocal
from app.core.errors import ErrorCode, authentication_error
from app.core.security import Identity, decode_token
from app.models.auth_user import AuthUser
from app.services.permission_service import authorize


security = HTTPBearer(auto_error=False)


def get_db() -> Generator:
    """Dependency for getting database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> Identity:
    """
    Resolve the caller from the bearer token issued by the identity provider
    """
    if credentials is None or not credentials.credentials:
        raise authentication_error("Missing token", ErrorCode.MISSING_TOKEN)

    try:
        payload = decode_token(credentials.credentials)
        user_id = payload.get("sub")
        if not user_id:
            raise ValueError("Token has no subject")
    except ValueError:
        raise authentication_error("Invalid token", ErrorCode.INVALID_TOKEN)

    user = db.query(AuthUser).filter(AuthUser.id == str(user_id)).first()
    if user is None:
        raise authentication_error("Invalid token", ErrorCode.INVALID_TOKEN)

    return Identity(id=user.id, email=user.email)


def require_perm(page_slug: str, required: int):
    """
    Dependency factory gating a route on a page mask

    Usage:
        @router.post("/create-role")
        def create_role_endpoint(identity: Identity = Depends(require_perm("settings", Perm.U))):
            ...
    """
    def permission_checker(
        identity: Identity = Depends(get_current_identity),
        db: Session = Depends(get_db)
    ) -> Identity:
        authorize(db, identity, page_slug, required)
        return identity
    return permission_checker
