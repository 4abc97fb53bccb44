import logging

from django.db import transaction

from apps.core.exceptions import NotFoundError, ServiceError
from apps.core.models import StudentProfile

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ('phone', 'course', 'year', 'branch')


def get_student_profile(user):
	try:
		return StudentProfile.objects.select_related('user').get(user=user)
	except StudentProfile.DoesNotExist:
		raise NotFoundError('Student profile not found.')


@transaction.atomic
def update_student_profile(user, **changes):
	"""Update name/phone/course/year/branch; roll and enrollment numbers stay fixed."""
	profile = get_student_profile(user)

	profile_changes = {k: v for k, v in changes.items() if k in PROFILE_FIELDS and v is not None}
	name = changes.get('name')

	if not profile_changes and name is None:
		raise ServiceError('No valid fields provided for update or no changes made.')

	for field, value in profile_changes.items():
		setattr(profile, field, value)
	if profile_changes:
		profile.save(update_fields=list(profile_changes))

	if name is not None:
		profile.user.name = name
		profile.user.save(update_fields=['name', 'updated_at'])

	logger.info(f"Student {user.id} updated profile fields {sorted(profile_changes) + (['name'] if name else [])}")
	return profile
