from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from coursework.core.errors import TransientIOFailure, UniqueViolation, ValidationFailed
from coursework.db.session import SessionLocal


# every request that needs DB will get a fresh session, and it will always close.
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def is_unique_violation(exc: IntegrityError) -> bool:
    # sqlite reports "UNIQUE constraint failed", postgres uses SQLSTATE 23505
    if getattr(exc.orig, "pgcode", None) == "23505":
        return True
    message = str(exc.orig).lower()
    return "unique constraint" in message or "duplicate key" in message


def commit_or_raise(db: Session, unique_field: str = "id") -> None:
    """Commit the unit of work, rolling back and translating store errors."""
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if is_unique_violation(exc):
            raise UniqueViolation(unique_field, f"Duplicate {unique_field}") from exc
        raise ValidationFailed("constraint", "Row violates a database constraint") from exc
    except OperationalError as exc:
        db.rollback()
        raise TransientIOFailure() from exc
    except Exception:
        db.rollback()
        raise
