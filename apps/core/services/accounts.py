import logging

from django.db import transaction
from django.utils import timezone

from apps.core.exceptions import AuthenticationError, ConflictError, ForbiddenError
from apps.core.models import User, StudentProfile
from apps.utils.activity import log_activity
from apps.utils.tokens import create_access_token

logger = logging.getLogger(__name__)


def ensure_unique_student_identifiers(email=None, roll_no=None, enrollment_no=None, exclude_user_id=None):
	users = User.objects.all()
	students = StudentProfile.objects.all()
	if exclude_user_id is not None:
		users = users.exclude(id=exclude_user_id)
		students = students.exclude(user_id=exclude_user_id)

	if email and users.filter(email__iexact=email).exists():
		raise ConflictError('Email already registered. Please use a different email or log in.')
	if roll_no and students.filter(roll_no=roll_no).exists():
		raise ConflictError('Roll Number already registered.')
	if enrollment_no and students.filter(enrollment_no=enrollment_no).exists():
		raise ConflictError('Enrollment Number already registered.')


@transaction.atomic
def register_student(name, email, password, roll_no, enrollment_no, branch, year, phone, course=None):
	"""Create a pending student account with its profile."""
	ensure_unique_student_identifiers(email=email, roll_no=roll_no, enrollment_no=enrollment_no)

	user = User.objects.create_user(
		email=email,
		password=password,
		name=name,
		role=User.ROLE_STUDENT,
		status=User.STATUS_PENDING,
	)
	profile = StudentProfile.objects.create(
		user=user,
		roll_no=roll_no,
		enrollment_no=enrollment_no,
		branch=branch,
		year=year,
		phone=phone,
		course=course or None,
	)

	logger.info(f"Registered student user {user.id} ({roll_no})")
	log_activity('student_registered', f"{name} registered with roll no {roll_no}", user.id, 'user')
	return profile


def login(email, password, role):
	"""Check credentials for the requested role and return (token, user)."""
	user = User.objects.filter(email__iexact=email).first()

	if user is None or user.role != role:
		raise AuthenticationError('Email or role does not match any account.')
	if user.status == User.STATUS_PENDING:
		raise ForbiddenError('Your account is pending admin approval.')
	if user.status == User.STATUS_SUSPENDED:
		raise ForbiddenError('Your account has been suspended.')
	if not user.check_password(password):
		raise AuthenticationError('Incorrect password.')

	user.last_login = timezone.now()
	user.save(update_fields=['last_login'])

	logger.info(f"User {user.id} logged in as {role}")
	return create_access_token(user), user
