# shared/utils/idempotency.py
"""
Cache-backed locks that keep an operation from running twice at the same time.
Used for in-flight payment submissions and per-class roster mutations.
"""
import logging
from contextlib import contextmanager

from django.core.cache import cache

logger = logging.getLogger(__name__)


class OperationInFlight(Exception):
    """Raised when a lock for the same operation is already held."""

    def __init__(self, key):
        self.key = key
        super().__init__(f"Operation already in progress: {key}")


class IdempotencyService:
    """Service to ensure operations are processed only once at a time."""

    @staticmethod
    def get_key(namespace, identifier):
        return f"studio_{namespace}_{identifier}"

    @staticmethod
    def check_and_lock(key, ttl=60):
        """
        Take the lock for `key`.
        Returns True if the caller may proceed, False if it is already held.
        """
        return cache.add(f"{key}_lock", True, ttl)

    @staticmethod
    def release(key):
        cache.delete(f"{key}_lock")

    @staticmethod
    def is_locked(key):
        return cache.get(f"{key}_lock") is not None

    @staticmethod
    @contextmanager
    def hold(key, ttl=60):
        """Hold the lock for the duration of the block; always released on exit."""
        if not IdempotencyService.check_and_lock(key, ttl):
            logger.info(f"Lock busy: {key}")
            raise OperationInFlight(key)
        try:
            yield
        finally:
            IdempotencyService.release(key)
