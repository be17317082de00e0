"""
Tests for the error taxonomy and constraint violation mapping
"""
import pytest
from sqlalchemy.exc import IntegrityError

from app.core.errors import (
    AppError,
    ErrorCode,
    ResolutionFailed,
    error_from_integrity,
    is_retryable,
    permission_error,
    validation_error,
)


class _PgError(Exception):
    def __init__(self, pgcode, message="constraint violated"):
        super().__init__(message)
        self.pgcode = pgcode


def _integrity(orig):
    return IntegrityError("INSERT ...", {}, orig)


@pytest.mark.parametrize(
    "sqlstate,code,status_code",
    [
        ("23505", ErrorCode.UNIQUE_VIOLATION, 409),
        ("23503", ErrorCode.FOREIGN_KEY_VIOLATION, 400),
        ("23514", ErrorCode.CHECK_VIOLATION, 400),
        ("23502", ErrorCode.MISSING_REQUIRED_FIELD, 400),
    ],
)
def test_postgres_sqlstate_mapping(sqlstate, code, status_code):
    error = error_from_integrity(_integrity(_PgError(sqlstate)))
    assert error.code == code
    assert error.status_code == status_code
    assert error.details["originalError"] == "constraint violated"


@pytest.mark.parametrize(
    "message,code",
    [
        ("UNIQUE constraint failed: roles.slug", ErrorCode.UNIQUE_VIOLATION),
        ("FOREIGN KEY constraint failed", ErrorCode.FOREIGN_KEY_VIOLATION),
        ("CHECK constraint failed: ck_user_page_perms_mask_range", ErrorCode.CHECK_VIOLATION),
        ("NOT NULL constraint failed: pages.label", ErrorCode.MISSING_REQUIRED_FIELD),
    ],
)
def test_sqlite_message_mapping(message, code):
    error = error_from_integrity(_integrity(Exception(message)))
    assert error.code == code


def test_unknown_violation_is_database_error():
    error = error_from_integrity(_integrity(_PgError("23P01")))
    assert error.code == ErrorCode.DATABASE_ERROR
    assert error.status_code == 500
    assert error.details["code"] == "23P01"


def test_envelope_shape():
    assert permission_error("Forbidden").to_dict() == {
        "error": "Forbidden",
        "code": ErrorCode.INSUFFICIENT_PERMISSIONS,
    }
    assert validation_error("slug", "bad").to_dict() == {
        "error": "bad",
        "code": ErrorCode.INVALID_INPUT,
        "details": {"field": "slug"},
    }


def test_retryable_codes():
    assert is_retryable(ResolutionFailed())
    assert is_retryable(AppError(ErrorCode.DATABASE_ERROR, "db down"))
    assert not is_retryable(permission_error())
    assert not is_retryable(validation_error("x", "bad"))
