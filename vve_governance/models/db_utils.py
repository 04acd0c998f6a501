import logging
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from vve_governance.exceptions import GovernanceError
from vve_governance.extensions import db  # Centralized SQLAlchemy instance

logger = logging.getLogger(__name__)


@contextmanager
def get_session_scope(database=None):
    """
    Provide a transactional scope for database operations.

    Usage:
        with get_session_scope() as session:
            session.add(...)
            # commit happens automatically unless an exception occurs

    Governance errors roll the transaction back and propagate unchanged;
    they are expected outcomes and are not logged as failures here.
    """
    session: Session = (database or db).session
    try:
        yield session
        session.commit()
    except GovernanceError as e:
        logger.debug(f"Rolling back scoped session after {e.code}.")
        session.rollback()
        raise
    except SQLAlchemyError as e:
        logger.error(f"Database error during scoped session: {e}", exc_info=True)
        session.rollback()
        raise
    except Exception as e:
        logger.error(f"Unexpected error during scoped session: {e}", exc_info=True)
        session.rollback()
        raise
    finally:
        session.close()
