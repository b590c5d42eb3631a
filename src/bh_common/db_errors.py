"""Helpers to read PostgreSQL error details out of SQLAlchemy DBAPI errors.

asyncpg exceptions are wrapped twice (asyncpg -> SQLAlchemy adapter -> DBAPIError),
so attributes are looked up on the adapter error and on its __cause__.
"""

from sqlalchemy.exc import DBAPIError

# SQLSTATE codes
LOCK_NOT_AVAILABLE = "55P03"
QUERY_CANCELED = "57014"  # raised when statement_timeout fires


def _driver_errors(exc: DBAPIError) -> list[object]:
    orig = exc.orig
    errors: list[object] = [orig] if orig is not None else []
    cause = getattr(orig, "__cause__", None)
    if cause is not None:
        errors.append(cause)
    return errors


def violated_constraint(exc: DBAPIError, known: tuple[str, ...] = ()) -> str | None:
    """Name of the constraint behind an IntegrityError, if it can be determined.

    Falls back to searching the error text for one of `known` names.
    """
    for err in _driver_errors(exc):
        name = getattr(err, "constraint_name", None)
        if name:
            return str(name)
    text = str(exc.orig)
    for name in known:
        if name in text:
            return name
    return None


def sqlstate(exc: DBAPIError) -> str | None:
    for err in _driver_errors(exc):
        code = getattr(err, "sqlstate", None) or getattr(err, "pgcode", None)
        if code:
            return str(code)
    return None


def is_timeout(exc: DBAPIError) -> bool:
    return sqlstate(exc) in (LOCK_NOT_AVAILABLE, QUERY_CANCELED)
