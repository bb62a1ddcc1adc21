from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
import logging
from utils import now_utc

# Retrieve main logger
logger = logging.getLogger("main")

db = SQLAlchemy()


def is_unique_violation(error):
    """True when an IntegrityError comes from a UNIQUE constraint.

    SQLite reports "UNIQUE constraint failed", PostgreSQL uses SQLSTATE 23505.
    """
    if not isinstance(error, IntegrityError):
        return False
    orig = getattr(error, "orig", None)
    if getattr(orig, "pgcode", None) == "23505":
        return True
    message = str(orig or error).lower()
    return "unique" in message or "duplicate" in message


def safe_commit():
    """Commit the session, rolling back and translating datastore errors.

    Unique violations raise DuplicateEntryException so callers can treat them
    as "already in the desired state"; anything else is a DatabaseException.
    """
    from exceptions import DatabaseException, DuplicateEntryException

    try:
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        if is_unique_violation(e):
            raise DuplicateEntryException() from e
        raise DatabaseException(f"Integrity error: {e.orig}") from e
    except SQLAlchemyError as e:
        db.session.rollback()
        raise DatabaseException(str(e)) from e


def init_db(app):
    with app.app_context():
        # Ensure foreign keys are enforced when a SQLite connection is opened
        @event.listens_for(db.engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            import sqlite3
            if not isinstance(dbapi_connection, sqlite3.Connection):
                return

            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON;")
            cursor.execute("PRAGMA busy_timeout=30000;")
            cursor.close()

        # Register every model on the metadata before creating tables
        import models  # noqa: F401

        db.create_all()
        logger.info("Database tables ready.")
