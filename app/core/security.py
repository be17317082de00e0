"""
Security utilities for identity verification and password hashing

Tokens are issued by the external identity provider; this service only
verifies them.
"""
from dataclasses import dataclass
from typing import Dict, Optional

import argon2
from jose import JWTError, jwt

from app.core.config import settings

_hasher = argon2.PasswordHasher()


@dataclass(frozen=True)
class Identity:
    """An authenticated caller as established by the identity provider"""
    id: str
    email: Optional[str] = None


def hash_password(password: str) -> str:
    """Hash a password for a newly created identity"""
    return _hasher.hash(password)


def decode_token(token: str) -> Dict:
    """Decode and verify an identity provider access token"""
    try:
        payload = jwt.decode(
            token,
            settings.IDENTITY_JWT_SECRET,
            algorithms=[settings.IDENTITY_JWT_ALGORITHM],
            audience=settings.IDENTITY_JWT_AUDIENCE,
        )
        return payload
    except JWTError:
        raise ValueError("Invalid token")
