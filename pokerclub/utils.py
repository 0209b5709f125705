# Standard library imports
from contextlib import contextmanager

# Third-party imports
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

# Local application imports
from pokerclub import db
from pokerclub.errors import ClubError, StoreUnavailable


@contextmanager
def atomic(description):
    """
    Run a block as one database transaction.

    Commits when the block finishes. Any ClubError raised inside rolls the
    session back and propagates unchanged; database errors roll back and are
    re-raised as StoreUnavailable so callers can tell them apart from rule
    violations. Anything else rolls back and propagates.

    Args:
        description (str): What the block does, used in the error log.

    Yields:
        The SQLAlchemy session.
    """
    try:
        yield db.session
        db.session.commit()
    except ClubError:
        db.session.rollback()
        raise
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Database error during {description}: {str(e)}")
        raise StoreUnavailable() from e
    except Exception:
        db.session.rollback()
        raise
