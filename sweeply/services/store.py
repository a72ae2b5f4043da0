"""
Session helpers shared by the service modules
"""
import logging
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

from sweeply.errors import AuthorizationError, StoreError
from sweeply.extensions import db

logger = logging.getLogger(__name__)


@contextmanager
def store_operation(message, error_class=StoreError):
    """
    Wrap database work so failures surface as a stable, operation-specific error

    The session is rolled back before the error is raised, so nothing from a
    failed block is committed later by accident.
    """
    try:
        yield db.session
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception(message)
        raise error_class(message)


def require_account(tenant_id):
    """Raise AuthorizationError unless an owning account is present"""
    if not tenant_id:
        raise AuthorizationError('User not authenticated')
    return tenant_id
