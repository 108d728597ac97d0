"""
Database utilities.
"""

import functools
import logging

from django.db import DatabaseError

from core.domain.exceptions import StorageError

logger = logging.getLogger(__name__)


def translate_database_errors(func):
    """
    Surface Django database failures as StorageError.

    Domain errors raised inside the wrapped call pass through untouched;
    nothing is retried here.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except DatabaseError as e:
            logger.error("Storage failure in %s: %s", func.__qualname__, e, exc_info=True)
            raise StorageError(f"Storage failure: {e}") from e

    return wrapper
