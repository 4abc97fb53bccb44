from django.conf import settings

from apps.core.models import Notification


def get_recent_notifications(user, limit=None):
	limit = limit or settings.MESS_CONFIG['recent_notifications_limit']
	return Notification.objects.filter(user=user)[:limit]
