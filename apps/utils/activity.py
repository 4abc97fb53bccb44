import logging

from django.db import DatabaseError, transaction

from apps.core.models import ActivityLog

logger = logging.getLogger(__name__)


def log_activity(type, description, entity_id=None, entity_type=None):
	"""Record an activity row; a failure here never breaks the caller."""
	try:
		with transaction.atomic():
			ActivityLog.objects.create(
				type=type,
				description=description,
				entity_id=str(entity_id) if entity_id is not None else None,
				entity_type=entity_type,
			)
	except DatabaseError as exc:
		logger.error(f"Failed to log activity {type}: {exc}")
