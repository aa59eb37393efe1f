# billing/apps.py
from django.apps import AppConfig
import logging

logger = logging.getLogger(__name__)


class BillingConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'billing'
    verbose_name = 'Billing & Payments'

    def ready(self):
        logger.debug("Billing app ready")
