import calendar
import logging

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from apps.core.exceptions import ConflictError, NotFoundError, ServiceError
from apps.core.models import MessPlan, User
from apps.utils.activity import log_activity
from apps.utils.notifications import send_mess_plan_decision_notification

logger = logging.getLogger(__name__)

BLOCKING_STATUSES = (MessPlan.STATUS_PENDING, MessPlan.STATUS_APPROVED)


def get_student_plans(user):
	return MessPlan.objects.filter(student=user)


def find_overlapping_plans(user, start_date, end_date):
	"""Pending or approved plans of `user` sharing at least one day with [start, end]."""
	return MessPlan.objects.filter(
		student=user,
		status__in=BLOCKING_STATUSES,
		start_date__lte=end_date,
		end_date__gte=start_date,
	)


@transaction.atomic
def create_request(user, start_date, end_date):
	today = timezone.localdate()

	if end_date < start_date:
		raise ServiceError('End date cannot be before start date.')
	if start_date < today:
		raise ServiceError('Start date cannot be in the past.')

	# serialize concurrent requests from the same student
	User.objects.select_for_update().filter(id=user.id).first()

	if find_overlapping_plans(user, start_date, end_date).exists():
		raise ConflictError(
			'You have an overlapping active or pending mess plan request. '
			'Please ensure your new plan starts after your current plan ends.'
		)

	plan = MessPlan.objects.create(student=user, start_date=start_date, end_date=end_date)
	logger.info(f"Student {user.id} requested mess plan {plan.id} ({start_date} to {end_date})")
	log_activity('mess_plan_requested', f"{user.name} requested {start_date} to {end_date}", plan.id, 'mess_plan')
	return plan


def get_active_plan(user, day=None):
	"""Approved plan covering `day` (today by default), or None."""
	day = day or timezone.localdate()
	return MessPlan.objects.filter(
		student=user,
		status=MessPlan.STATUS_APPROVED,
		start_date__lte=day,
		end_date__gte=day,
	).order_by('-start_date').first()


def get_all_plans():
	return MessPlan.objects.select_related('student', 'student__student_profile')


def get_plan(plan_id):
	try:
		return get_all_plans().get(id=plan_id)
	except MessPlan.DoesNotExist:
		raise NotFoundError('Mess plan not found.')


@transaction.atomic
def _decide(plan_id, status, rejection_reason=None):
	plan = get_plan(plan_id)
	MessPlan.objects.select_for_update().filter(id=plan.id).first()
	plan.refresh_from_db(fields=['status'])

	if plan.status != MessPlan.STATUS_PENDING:
		raise ConflictError(f"Mess plan is already {plan.status}; only pending plans can be decided.")

	plan.status = status
	plan.rejection_reason = rejection_reason
	plan.save(update_fields=['status', 'rejection_reason', 'updated_at'])

	logger.info(f"Mess plan {plan.id} marked {status}")
	log_activity(f"mess_plan_{status}", f"Plan {plan.id} for {plan.student.name} {status}", plan.id, 'mess_plan')
	# the task re-reads the plan, so queue it only once the decision is committed
	transaction.on_commit(lambda: send_mess_plan_decision_notification.delay(plan.id))
	return plan


def approve_plan(plan_id):
	return _decide(plan_id, MessPlan.STATUS_APPROVED)


def reject_plan(plan_id, rejection_reason):
	if not rejection_reason or not rejection_reason.strip():
		raise ServiceError('Rejection reason is required.')
	return _decide(plan_id, MessPlan.STATUS_REJECTED, rejection_reason.strip())


def subtract_months(day, months):
	month_index = day.year * 12 + (day.month - 1) - months
	year, month = divmod(month_index, 12)
	month += 1
	last_day = calendar.monthrange(year, month)[1]
	return day.replace(year=year, month=month, day=min(day.day, last_day))


def cleanup_old_plans(months=None, today=None):
	"""Delete decided plans that ended more than `months` months ago."""
	if months is None:
		months = settings.MESS_CONFIG['mess_plan_retention_months']
	threshold = subtract_months(today or timezone.localdate(), months)

	deleted, _ = MessPlan.objects.filter(
		end_date__lt=threshold,
		status__in=(MessPlan.STATUS_APPROVED, MessPlan.STATUS_REJECTED),
	).delete()

	logger.info(f"Deleted {deleted} mess plans that ended before {threshold}")
	return deleted
