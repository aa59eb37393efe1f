"""
Shared package - constants, utils and the studio backend gateway.
Avoids importing services at package level to prevent circular dependencies.
"""

# Constants
from .constants import PaymentMethods, PaymentShape, Severity

# Utilities
from .utils import IdempotencyService

__all__ = [
    # Constants
    'PaymentMethods',
    'PaymentShape',
    'Severity',

    # Utilities
    'IdempotencyService',
]
