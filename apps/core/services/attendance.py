import calendar
import logging
from datetime import timedelta

from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.core.exceptions import ConflictError, ForbiddenError, NotFoundError, QRCodeError, ServiceError
from apps.core.models import Attendance, User
from apps.core.services import mess_plans
from apps.utils import meals
from apps.utils.activity import log_activity
from apps.utils.notifications import send_attendance_marked_notification
from apps.utils.qr_utils import generate_qr_image, generate_qr_payload, verify_qr_payload

logger = logging.getLogger(__name__)

MEALS_PER_DAY = len(meals.MEAL_TYPES)


def ensure_own_records(requester, user_id):
	"""Students may only read their own attendance; admins may read anyone's."""
	if requester.role == User.ROLE_ADMIN:
		return
	if requester.id != int(user_id):
		raise ForbiddenError('Forbidden: You can only access your own attendance records.')


def already_marked(user_id, day, meal_type):
	return Attendance.objects.filter(user_id=user_id, date=day, meal_type=meal_type).exists()


def issue_meal_qr(user, user_id, day, meal_type):
	"""Issue a signed meal token plus its QR image for the calling student.

	Returns {'qrData', 'qrImage', 'expiresAt'}.
	"""
	if user.id != int(user_id):
		raise ForbiddenError('You can only generate QR codes for yourself.')

	plan = mess_plans.get_active_plan(user)
	if plan is None:
		raise ServiceError('You do not have an active mess plan for today.')

	today = timezone.localdate()
	if not plan.covers(day):
		raise ServiceError('The selected date is outside your active mess plan.')
	if day != today:
		raise ServiceError('QR codes can only be generated for today.')

	if already_marked(user.id, today, meal_type):
		raise ConflictError(f"You have already had {meal_type} today.")

	active_meal = meals.get_active_meal_type()
	if active_meal != meal_type:
		if active_meal is None:
			raise ConflictError('No meal is being served right now.')
		raise ConflictError(f"It is currently {active_meal} time. You cannot generate a QR code for {meal_type}.")

	token, expires_at = generate_qr_payload(user.id, day, meal_type)
	logger.info(f"Issued {meal_type} QR for user {user.id}, expires {expires_at.isoformat()}")

	return {
		'qrData': token,
		'qrImage': f"data:image/png;base64,{generate_qr_image(token)}",
		'expiresAt': expires_at,
	}


def record_attendance(student, day, meal_type, marked_by=None, ip_address=None, device_info=None,
		is_manual_entry=False, notes=None):
	"""Insert one attendance row; a duplicate (user, date, meal) is a conflict."""
	if already_marked(student.id, day, meal_type):
		raise ConflictError(f"{student.name} has already been marked for {meal_type} on {day}.")

	try:
		with transaction.atomic():
			record = Attendance.objects.create(
				user=student,
				date=day,
				meal_type=meal_type,
				marked_by=marked_by,
				ip_address=ip_address,
				device_info=device_info,
				is_manual_entry=is_manual_entry,
				notes=notes,
			)
	except IntegrityError:
		# lost the race against a concurrent scan of the same token
		logger.warning(f"Concurrent attendance insert for user {student.id} {meal_type} {day}")
		raise ConflictError(f"{student.name} has already been marked for {meal_type} on {day}.")

	source = 'manual entry' if is_manual_entry else 'QR scan'
	marker = marked_by.id if marked_by else None
	logger.info(f"Attendance {record.id}: user {student.id} {meal_type} {day} via {source} by {marker}")
	log_activity(
		'attendance_marked',
		f"{student.name} marked for {meal_type} on {day} ({source})",
		record.id,
		'attendance',
	)
	send_attendance_marked_notification.delay(student.id, meal_type, day.isoformat())
	return record


def _get_approved_student(user_id):
	try:
		student = User.objects.get(id=user_id)
	except User.DoesNotExist:
		raise NotFoundError('Student not found.')
	if student.role != User.ROLE_STUDENT or not student.is_approved:
		raise ServiceError('Student account is not approved for mess access.')
	return student


def mark_attendance_by_qr(token, meal_type, marked_by, ip_address=None, device_info=None):
	"""Redeem a scanned meal token for the meal being served."""
	claims, message = verify_qr_payload(token)
	if claims is None:
		raise QRCodeError(message)

	if claims['mealType'] != meal_type:
		raise QRCodeError(f"This QR code is for {claims['mealType']}, not {meal_type}.")

	today = timezone.localdate()
	if claims['date'] != today.isoformat():
		raise QRCodeError("This QR code is not valid for today's date.")

	student = _get_approved_student(claims['userId'])
	return record_attendance(
		student,
		today,
		meal_type,
		marked_by=marked_by,
		ip_address=ip_address,
		device_info=device_info,
	)


def mark_manual(user_id, day, meal_type, marked_by, notes=None):
	"""Admin entry for a meal that was served without a scan."""
	if day > timezone.localdate():
		raise ServiceError('Attendance cannot be recorded for a future date.')
	student = _get_approved_student(user_id)
	return record_attendance(student, day, meal_type, marked_by=marked_by, is_manual_entry=True, notes=notes)


def get_student_records(user_id, start_date, end_date=None):
	end_date = end_date or start_date
	if end_date < start_date:
		raise ServiceError('End date cannot be before start date.')
	return Attendance.objects.filter(
		user_id=user_id,
		date__gte=start_date,
		date__lte=end_date,
	).order_by('-date', '-marked_at')


def get_student_summary(user_id, today=None):
	"""Meals attended against meals possible for this month, week and today.

	Weeks start on Sunday.
	"""
	today = today or timezone.localdate()
	month_start = today.replace(day=1)
	days_in_month = calendar.monthrange(today.year, today.month)[1]
	month_end = today.replace(day=days_in_month)
	# isoweekday: Monday=1 .. Sunday=7
	week_start = today - timedelta(days=today.isoweekday() % 7)
	week_end = week_start + timedelta(days=6)

	records = Attendance.objects.filter(user_id=user_id)

	return {
		'thisMonthTotalPossibleMeals': days_in_month * MEALS_PER_DAY,
		'thisMonthAttendedMeals': records.filter(date__gte=month_start, date__lte=month_end).count(),
		'thisWeekTotalPossibleMeals': 7 * MEALS_PER_DAY,
		'thisWeekAttendedMeals': records.filter(date__gte=week_start, date__lte=week_end).count(),
		'todayTotalPossibleMeals': MEALS_PER_DAY,
		'todayAttendedMeals': records.filter(date=today).count(),
	}
