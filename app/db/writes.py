"""
Write helpers shared by the services

Upserts use INSERT ... ON CONFLICT DO UPDATE, so concurrent writers to the
same key resolve at the store (last write wins).
"""
from contextlib import contextmanager
from typing import Any, Dict, Iterable, List

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import AppError, ErrorCode, error_from_integrity

_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def upsert(
    db: Session,
    model,
    rows: List[Dict[str, Any]],
    conflict_columns: Iterable[str],
    update_columns: Iterable[str],
) -> None:
    """Upsert ``rows`` into ``model``'s table without committing"""
    if not rows:
        return
    dialect = db.get_bind().dialect.name
    insert = _INSERTS.get(dialect)
    if insert is None:
        raise RuntimeError(f"Upsert is not supported for dialect '{dialect}'")

    stmt = insert(model.__table__).values(rows)
    stmt = stmt.on_conflict_do_update(
        index_elements=list(conflict_columns),
        set_={column: stmt.excluded[column] for column in update_columns},
    )
    db.execute(stmt)


@contextmanager
def committing(db: Session):
    """
    Commit the writes made inside the block

    Constraint violations become taxonomy errors; the session is rolled back
    on any store failure.
    """
    try:
        yield
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise error_from_integrity(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise AppError(ErrorCode.DATABASE_ERROR, "Database operation failed") from exc
