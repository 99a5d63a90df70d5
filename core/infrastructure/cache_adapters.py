"""
Django cache implementation of CachePort.

Keys embed email addresses, so only their namespace is ever logged.
"""

import logging
from typing import Any, Dict, Optional

from asgiref.sync import sync_to_async
from django.core.cache import cache

from core.infrastructure.cache import CachePort
from core.metrics import store_errors_total

logger = logging.getLogger(__name__)


def key_namespace(key: str) -> str:
    """``verification_code:login:a@b.c`` -> ``verification_code:login``."""
    return ":".join(key.split(":")[:2])


class DjangoCacheAdapter(CachePort):
    """
    CachePort over ``CACHES["default"]`` (Redis in production).

    Backend failures are counted and logged; reads then behave as a miss
    and writes report False so callers can answer STORE_UNAVAILABLE.
    """

    def _failed(self, operation: str, key: str, error: Exception) -> None:
        store_errors_total.labels(operation=f"cache_{operation}").inc()
        logger.error(
            "Cache %s failed for %s: %s",
            operation,
            key_namespace(key),
            error,
            extra={"operation": operation},
        )

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        try:
            return await sync_to_async(cache.get)(key)
        except Exception as e:  # pylint: disable=broad-exception-caught
            self._failed("get", key, e)
            return None

    async def set(self, key: str, value: Dict[str, Any], timeout: Optional[int] = None) -> bool:
        try:
            await sync_to_async(cache.set)(key, value, timeout=timeout)
        except Exception as e:  # pylint: disable=broad-exception-caught
            self._failed("set", key, e)
            return False
        logger.debug("Cache entry stored in %s", key_namespace(key))
        return True

    async def delete(self, key: str) -> None:
        try:
            await sync_to_async(cache.delete)(key)
        except Exception as e:  # pylint: disable=broad-exception-caught
            self._failed("delete", key, e)


cache_adapter = DjangoCacheAdapter()
