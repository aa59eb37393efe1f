# shared/utils/__init__.py
from .idempotency import IdempotencyService, OperationInFlight

__all__ = [
    'IdempotencyService',
    'OperationInFlight',
]
