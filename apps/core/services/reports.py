import logging
from datetime import timedelta

from django.conf import settings
from django.db.models import Count, F, Q
from django.utils import timezone

from apps.core.models import Attendance, MessPlan, User

logger = logging.getLogger(__name__)

REPORT_FIELDS = dict(
	userId=F('user_id'),
	userName=F('user__name'),
	rollNo=F('user__student_profile__roll_no'),
	enrollmentNo=F('user__student_profile__enrollment_no'),
	mealType=F('meal_type'),
	markedAt=F('marked_at'),
	markedById=F('marked_by_id'),
	markedByUserName=F('marked_by__name'),
	ipAddress=F('ip_address'),
	deviceInfo=F('device_info'),
	isManualEntry=F('is_manual_entry'),
)


def attendance_report(filters=None):
	"""Attendance rows joined with student and marker details, newest first.

	Supported filters: start_date, end_date, meal_type, student_id,
	search_query, is_manual_entry, limit.
	"""
	filters = filters or {}
	records = Attendance.objects.all()

	if filters.get('start_date'):
		records = records.filter(date__gte=filters['start_date'])
	if filters.get('end_date'):
		records = records.filter(date__lte=filters['end_date'])
	if filters.get('meal_type'):
		records = records.filter(meal_type=filters['meal_type'])
	if filters.get('student_id'):
		records = records.filter(user_id=filters['student_id'])
	if filters.get('search_query'):
		query = filters['search_query']
		records = records.filter(
			Q(user__name__icontains=query)
			| Q(user__student_profile__roll_no__icontains=query)
			| Q(user__student_profile__enrollment_no__icontains=query)
		)
	if filters.get('is_manual_entry') is not None:
		records = records.filter(is_manual_entry=filters['is_manual_entry'])

	rows = records.order_by('-date', '-marked_at', '-id').values('id', 'date', 'notes', **REPORT_FIELDS)

	if filters.get('limit'):
		rows = rows[:filters['limit']]
	return list(rows)


def _week_start(day):
	"""Monday of the week containing `day`."""
	return day - timedelta(days=day.weekday())


def _period_counts(today):
	records = Attendance.objects.all()
	return {
		'thisWeekAttendedMeals': records.filter(date__gte=_week_start(today), date__lte=today).count(),
		'thisMonthAttendedMeals': records.filter(date__year=today.year, date__month=today.month).count(),
	}


def approved_student_count():
	return User.objects.filter(role=User.ROLE_STUDENT, status=User.STATUS_APPROVED).count()


def admin_attendance_summary(today=None):
	today = today or timezone.localdate()
	todays = Attendance.objects.filter(date=today).aggregate(
		meals=Count('id'),
		students=Count('user', distinct=True),
	)
	summary = {
		'totalApprovedStudents': approved_student_count(),
		'todayAttendedStudents': todays['students'],
		'todayAttendedMeals': todays['meals'],
	}
	summary.update(_period_counts(today))
	return summary


def staff_today_summary(today=None):
	today = today or timezone.localdate()
	todays = Attendance.objects.filter(date=today).aggregate(
		totalMealsMarkedToday=Count('id'),
		distinctStudentsMarkedToday=Count('user', distinct=True),
		todayBreakfastCount=Count('id', filter=Q(meal_type=Attendance.MEAL_BREAKFAST)),
		todayLunchCount=Count('id', filter=Q(meal_type=Attendance.MEAL_LUNCH)),
		todayDinnerCount=Count('id', filter=Q(meal_type=Attendance.MEAL_DINNER)),
	)
	summary = {'date': today.isoformat()}
	summary.update(todays)
	summary['totalApprovedStudents'] = approved_student_count()
	summary.update(_period_counts(today))
	return summary


def recent_attendance(limit=None):
	limit = limit or settings.MESS_CONFIG['dashboard_recent_limit']
	return attendance_report({'limit': limit})


def admin_dashboard_stats():
	limit = settings.MESS_CONFIG['dashboard_recent_limit']
	pending = MessPlan.objects.filter(status=MessPlan.STATUS_PENDING).order_by('-created_at', '-id').values(
		'id',
		'status',
		studentId=F('student_id'),
		startDate=F('start_date'),
		endDate=F('end_date'),
		createdAt=F('created_at'),
		studentName=F('student__name'),
		enrollmentNumber=F('student__student_profile__enrollment_no'),
	)[:limit]

	return {
		'totalStudents': User.objects.filter(role=User.ROLE_STUDENT).count(),
		'totalStaff': User.objects.filter(role=User.ROLE_STAFF).count(),
		'activeMessPlans': MessPlan.objects.filter(status=MessPlan.STATUS_APPROVED).count(),
		'pendingMessPlans': list(pending),
	}


def approved_students():
	return list(
		User.objects.filter(role=User.ROLE_STUDENT, status=User.STATUS_APPROVED)
		.order_by('name', 'id')
		.values(
			'id',
			'name',
			'email',
			rollNo=F('student_profile__roll_no'),
			enrollmentNo=F('student_profile__enrollment_no'),
		)
	)
