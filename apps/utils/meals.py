from datetime import datetime, time

from django.conf import settings
from django.utils import timezone

MEAL_TYPES = ('breakfast', 'lunch', 'dinner')


def _parse_time(value):
	return datetime.strptime(value, '%H:%M').time()


def get_meal_windows():
	"""Return {meal_type: (start, end)} from MESS_CONFIG, in serving order."""
	windows = settings.MESS_CONFIG['meal_windows']
	return {
		meal: (_parse_time(windows[meal]['start']), _parse_time(windows[meal]['end']))
		for meal in MEAL_TYPES
		if meal in windows
	}


def get_active_meal_type(now=None):
	"""Meal whose window contains `now` (local time), or None between meals.

	Windows are start-inclusive and end-exclusive.
	"""
	if now is None:
		now = timezone.localtime()
	current = now.time() if isinstance(now, datetime) else now
	if not isinstance(current, time):
		raise TypeError("now must be a datetime or time")

	for meal, (start, end) in get_meal_windows().items():
		if start <= current < end:
			return meal
	return None


def is_valid_meal_type(meal_type):
	return meal_type in MEAL_TYPES
