"""
Shared services aggregator.
Safe to import without triggering circular imports.
"""

from .studio import StudioBackend, StudioSession, StudioAPIClient, DatabaseBackend, get_backend

__all__ = [
    'StudioBackend',
    'StudioSession',
    'StudioAPIClient',
    'DatabaseBackend',
    'get_backend',
]
