# shared/services/studio/__init__.py
import logging

from django.conf import settings

from .base import StudioBackend, StudioSession
from .client import StudioAPIClient
from .database import DatabaseBackend

logger = logging.getLogger(__name__)


def get_backend(session=None, user=None) -> StudioBackend:
    """
    Gateway selected by settings.STUDIO_BACKEND.

    Args:
        session: StudioSession for the remote API gateway
        user: Django user whose permissions the database gateway enforces
    """
    backend_name = getattr(settings, 'STUDIO_BACKEND', 'database')

    if backend_name == 'api':
        if session is None and getattr(settings, 'STUDIO_API_TOKEN', ''):
            session = StudioSession(settings.STUDIO_API_TOKEN)
        return StudioAPIClient(session=session)

    if backend_name != 'database':
        logger.warning(f"Unknown STUDIO_BACKEND '{backend_name}', using database gateway")
    return DatabaseBackend(user=user)


__all__ = [
    'StudioBackend',
    'StudioSession',
    'StudioAPIClient',
    'DatabaseBackend',
    'get_backend',
]
