"""
Database utilities shared by the ORM repositories.
"""

import functools
import logging
from typing import Callable, TypeVar

from django.db import DatabaseError, IntegrityError

from core.domain.exceptions import StoreUnavailableError
from core.metrics import store_errors_total

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable)


def translate_store_errors(operation: str) -> Callable[[F], F]:
    """
    Decorate a synchronous repository method so that connectivity and
    timeout failures surface as StoreUnavailableError.

    IntegrityError is left alone; repositories map it to the matching
    domain conflict themselves.

    Usage:
        @sync_to_async
        @translate_store_errors("claim")
        def claim(self, ...):
            ...
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except IntegrityError:
                raise
            except DatabaseError as e:
                store_errors_total.labels(operation=operation).inc()
                logger.error(
                    "Record store failure during %s: %s",
                    operation,
                    e,
                    extra={"operation": operation},
                    exc_info=True,
                )
                raise StoreUnavailableError() from e

        return wrapper  # type: ignore[return-value]

    return decorator
