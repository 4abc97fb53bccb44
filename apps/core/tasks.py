from celery import shared_task
from django.db import DatabaseError
import logging

from apps.core.services.mess_plans import cleanup_old_plans

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3)
def cleanup_old_mess_plans(self, months=None):
    """Nightly retention sweep for decided mess plans"""
    try:
        deleted = cleanup_old_plans(months)
        logger.info(f"Mess plan cleanup removed {deleted} plans")
        return deleted

    except DatabaseError as exc:
        logger.error(f"Mess plan cleanup failed: {exc}")

        if self.request.retries < self.max_retries:
            raise self.retry(exc=exc, countdown=60 * (2 ** self.request.retries))
        raise
