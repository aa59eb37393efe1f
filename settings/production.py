# settings/production.py
"""
Production settings for the studio billing project.
Extends the base LOGGING instead of replacing it.
"""
import os

from .base import *

DEBUG = False
ALLOWED_HOSTS = [host for host in os.getenv('ALLOWED_HOSTS', '').split(',') if host]

# Behind a TLS-terminating proxy
SECURE_SSL_REDIRECT = True
SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')
SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True
SECURE_HSTS_SECONDS = int(os.getenv('SECURE_HSTS_SECONDS', 31536000))

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.postgresql',
        'NAME': os.getenv('DB_NAME'),
        'USER': os.getenv('DB_USER'),
        'PASSWORD': os.getenv('DB_PASSWORD'),
        'HOST': os.getenv('DB_HOST'),
        'PORT': os.getenv('DB_PORT'),
        'CONN_MAX_AGE': int(os.getenv('DB_CONN_MAX_AGE', 600)),
        'OPTIONS': {'sslmode': os.getenv('DB_SSLMODE', 'require')},
    }
}

# Locks must be visible to every worker process
CACHES['default'] = {
    'BACKEND': 'django_redis.cache.RedisCache',
    'LOCATION': os.getenv('REDIS_URL', 'redis://127.0.0.1:6379/1'),
    'OPTIONS': {'CLIENT_CLASS': 'django_redis.client.DefaultClient'},
    'KEY_PREFIX': 'studio',
}

LOG_DIR = os.getenv('STUDIO_LOG_DIR', '/var/log/studio')


def _rotating_handler(filename, level='INFO'):
    return {
        'level': level,
        'class': 'logging.handlers.RotatingFileHandler',
        'filename': os.path.join(LOG_DIR, filename),
        'maxBytes': 10 * 1024 * 1024,
        'backupCount': 10,
        'formatter': 'verbose',
    }


LOGGING['handlers']['file'] = _rotating_handler('studio.log')
LOGGING['handlers']['billing_file'] = _rotating_handler('billing.log')
LOGGING['handlers']['error_file'] = _rotating_handler('error.log', level='ERROR')

for _name in ('django', 'core', 'shared', 'roster'):
    LOGGING['loggers'][_name]['handlers'] = ['console', 'file', 'error_file']
LOGGING['loggers']['billing']['handlers'] = ['console', 'billing_file', 'error_file']
