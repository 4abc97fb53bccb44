import logging

from django.db import transaction

from apps.core.exceptions import ConflictError, NotFoundError, ServiceError
from apps.core.models import User, StudentProfile, StaffProfile
from apps.core.services.accounts import ensure_unique_student_identifiers
from apps.utils.activity import log_activity
from apps.utils.notifications import send_account_status_notification

logger = logging.getLogger(__name__)


def list_users():
	return User.objects.select_related('student_profile', 'staff_profile').order_by('id')


def get_user(user_id):
	try:
		return User.objects.select_related('student_profile', 'staff_profile').get(id=user_id)
	except User.DoesNotExist:
		raise NotFoundError('User not found')


def _ensure_unique_staff_identifier(employee_id, exclude_user_id=None):
	staff = StaffProfile.objects.filter(employee_id=employee_id)
	if exclude_user_id is not None:
		staff = staff.exclude(user_id=exclude_user_id)
	if staff.exists():
		raise ConflictError('Employee ID already registered.')


def _update_phone(model, user, phone):
	if phone is not None:
		model.objects.filter(user=user).update(phone=phone)


def _save_role_profile(user, phone, student_data=None, staff_data=None):
	"""Create or update the profile matching user.role and drop the other one."""
	if user.role == User.ROLE_STUDENT:
		StaffProfile.objects.filter(user=user).delete()
		if not student_data:
			if not StudentProfile.objects.filter(user=user).exists():
				raise ServiceError('Student data is required for student role.')
			_update_phone(StudentProfile, user, phone)
			return
		defaults = {
			'roll_no': student_data['roll_no'],
			'enrollment_no': student_data['enrollment_no'],
			'branch': student_data['branch'],
			'year': student_data['year'],
			'course': student_data.get('course') or None,
		}
		if phone is not None:
			defaults['phone'] = phone
		elif not StudentProfile.objects.filter(user=user).exists():
			defaults['phone'] = ''
		StudentProfile.objects.update_or_create(user=user, defaults=defaults)
	elif user.role == User.ROLE_STAFF:
		StudentProfile.objects.filter(user=user).delete()
		if not staff_data:
			if not StaffProfile.objects.filter(user=user).exists():
				raise ServiceError('Staff data is required for staff role.')
			_update_phone(StaffProfile, user, phone)
			return
		defaults = {
			'employee_id': staff_data['employee_id'],
			'position': staff_data['position'],
		}
		if phone is not None:
			defaults['phone'] = phone
		StaffProfile.objects.update_or_create(user=user, defaults=defaults)


@transaction.atomic
def create_user(name, email, password, role, status=User.STATUS_PENDING, phone=None,
		student_data=None, staff_data=None):
	if role not in (User.ROLE_STUDENT, User.ROLE_STAFF):
		raise ServiceError('Invalid role selected (must be student or staff)')

	if role == User.ROLE_STUDENT:
		if not student_data:
			raise ServiceError('Student data is required for student role.')
		ensure_unique_student_identifiers(
			email=email,
			roll_no=student_data['roll_no'],
			enrollment_no=student_data['enrollment_no'],
		)
	else:
		if not staff_data:
			raise ServiceError('Staff data is required for staff role.')
		ensure_unique_student_identifiers(email=email)
		_ensure_unique_staff_identifier(staff_data['employee_id'])

	user = User.objects.create_user(email=email, password=password, name=name, role=role, status=status)
	_save_role_profile(user, phone, student_data, staff_data)

	logger.info(f"Admin created {role} user {user.id}")
	log_activity('user_created', f"Created {role} account for {email}", user.id, 'user')
	return user


@transaction.atomic
def update_user(user_id, name=None, email=None, role=None, status=None, new_password=None,
		phone=None, student_data=None, staff_data=None):
	user = get_user(user_id)
	previous_status = user.status

	if email is not None:
		ensure_unique_student_identifiers(email=email, exclude_user_id=user.id)
	if role is not None and role not in (User.ROLE_STUDENT, User.ROLE_STAFF):
		raise ServiceError('Invalid role selected (must be student or staff)')
	if student_data:
		ensure_unique_student_identifiers(
			roll_no=student_data['roll_no'],
			enrollment_no=student_data['enrollment_no'],
			exclude_user_id=user.id,
		)
	if staff_data:
		_ensure_unique_staff_identifier(staff_data['employee_id'], exclude_user_id=user.id)

	if name is not None:
		user.name = name
	if email is not None:
		user.email = email
	if role is not None:
		user.role = role
	if status is not None:
		user.status = status
	if new_password:
		user.set_password(new_password)
	user.save()

	if role is not None or phone is not None or student_data or staff_data:
		_save_role_profile(user, phone, student_data, staff_data)

	logger.info(f"Admin updated user {user.id}")
	log_activity('user_updated', f"Updated account {user.email}", user.id, 'user')

	if user.status != previous_status:
		log_activity('user_status_changed', f"{user.email}: {previous_status} -> {user.status}", user.id, 'user')
		send_account_status_notification.delay(user.id, user.status)

	return user


def delete_user(user_id, acting_user=None):
	user = get_user(user_id)
	if acting_user is not None and acting_user.id == user.id:
		raise ServiceError('You cannot delete your own account.')
	email = user.email
	user.delete()
	logger.info(f"Admin deleted user {user_id}")
	log_activity('user_deleted', f"Deleted account {email}", user_id, 'user')
	return True
