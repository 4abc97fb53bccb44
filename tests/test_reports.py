import calendar
import csv
import io
from datetime import timedelta

import pytest
from django.utils import timezone

from apps.core.models import Attendance, MessPlan


def mark(user, day, meal_type, marked_by=None, **extra):
    return Attendance.objects.create(user=user, date=day, meal_type=meal_type, marked_by=marked_by, **extra)


@pytest.fixture
def records(student, make_student, staff_user, today):
    other = make_student(name='Bilal Khan', roll_no='EE777', enrollment_no='EN2024777')
    return [
        mark(student, today, 'breakfast', staff_user),
        mark(student, today, 'lunch', staff_user),
        mark(other, today, 'lunch', staff_user),
        mark(other, today - timedelta(days=40), 'dinner', None, is_manual_entry=True, notes='Backfilled'),
    ]


@pytest.mark.django_db
class TestAdminReports:
    """Admin attendance list, summary and dashboard"""

    def test_list_rows_carry_student_details(self, admin_client, records):
        response = admin_client.get('/api/admin/attendance')

        rows = response.json()['data']
        assert len(rows) == 4
        first = rows[0]
        assert {'userId', 'userName', 'rollNo', 'enrollmentNo', 'date', 'mealType', 'markedAt',
                'markedByUserName', 'isManualEntry', 'notes'} <= set(first)
        assert rows[-1]['notes'] == 'Backfilled'

    def test_list_is_newest_first(self, admin_client, records):
        dates = [row['date'] for row in admin_client.get('/api/admin/attendance').json()['data']]
        assert dates == sorted(dates, reverse=True)

    @pytest.mark.parametrize('params, expected', [
        ({'mealType': 'lunch'}, 2),
        ({'searchQuery': 'ee777'}, 2),
        ({'searchQuery': 'asha'}, 2),
        ({'isManualEntry': 'true'}, 1),
        ({'isManualEntry': 'false'}, 3),
        ({'limit': '1'}, 1),
    ])
    def test_list_filters(self, admin_client, records, params, expected):
        response = admin_client.get('/api/admin/attendance', params)
        assert len(response.json()['data']) == expected

    def test_filter_by_student_and_range(self, admin_client, records, student, today):
        response = admin_client.get('/api/admin/attendance', {
            'studentId': student.id,
            'startDate': today.isoformat(),
            'endDate': today.isoformat(),
        })

        rows = response.json()['data']
        assert {row['userId'] for row in rows} == {student.id}
        assert len(rows) == 2

    def test_bad_range(self, admin_client, today):
        response = admin_client.get('/api/admin/attendance', {
            'startDate': today.isoformat(),
            'endDate': (today - timedelta(days=1)).isoformat(),
        })
        assert response.status_code == 400

    def test_summary(self, admin_client, records):
        data = admin_client.get('/api/admin/attendance/summary').json()['data']

        assert data['totalApprovedStudents'] == 2
        assert data['todayAttendedMeals'] == 3
        assert data['todayAttendedStudents'] == 2
        assert data['thisWeekAttendedMeals'] == 3
        assert data['thisMonthAttendedMeals'] == 3

    def test_dashboard_stats(self, admin_client, student, make_student, staff_user, today):
        MessPlan.objects.create(student=student, start_date=today, end_date=today, status=MessPlan.STATUS_APPROVED)
        for _ in range(6):
            MessPlan.objects.create(student=make_student(), start_date=today, end_date=today)

        data = admin_client.get('/api/admin/dashboard-stats').json()['data']

        assert data['totalStudents'] == 7
        assert data['totalStaff'] == 1
        assert data['activeMessPlans'] == 1
        assert len(data['pendingMessPlans']) == 5
        assert {'studentName', 'enrollmentNumber', 'startDate'} <= set(data['pendingMessPlans'][0])

    def test_approved_students(self, admin_client, student, make_student):
        make_student(status='pending')

        data = admin_client.get('/api/admin/students/approved').json()['data']

        assert [row['rollNo'] for row in data] == ['CS101']


@pytest.mark.django_db
class TestStaffReports:
    """Staff dashboard views"""

    def test_today_records(self, staff_client, records):
        rows = staff_client.get('/api/staff/attendance').json()['data']
        assert len(rows) == 3

    def test_summary_counts_per_meal(self, staff_client, records, today):
        data = staff_client.get('/api/staff/attendance/summary').json()['data']

        assert data['date'] == today.isoformat()
        assert data['totalMealsMarkedToday'] == 3
        assert data['distinctStudentsMarkedToday'] == 2
        assert data['todayBreakfastCount'] == 1
        assert data['todayLunchCount'] == 2
        assert data['todayDinnerCount'] == 0
        assert data['totalApprovedStudents'] == 2

    def test_dashboard_summary(self, staff_client, records):
        response = staff_client.get('/api/staff/dashboard/summary')
        assert response.json()['data']['totalMealsMarkedToday'] == 3

    def test_recent_attendance_is_capped(self, staff_client, make_student, today):
        for _ in range(7):
            mark(make_student(), today, 'lunch')

        rows = staff_client.get('/api/staff/dashboard/recent-attendance').json()['data']

        assert len(rows) == 5


@pytest.mark.django_db
class TestStudentReports:
    """Student attendance views"""

    def test_day_records(self, student_client, student, records, today):
        response = student_client.get(f'/api/student/{student.id}/attendance', {'date': today.isoformat()})

        meals = {row['mealType'] for row in response.json()['data']}
        assert meals == {'breakfast', 'lunch'}

    def test_range_requires_dates(self, student_client, student):
        assert student_client.get(f'/api/student/{student.id}/attendance/range').status_code == 400

    def test_range(self, student_client, student, records, today):
        response = student_client.get(f'/api/student/{student.id}/attendance/range', {
            'startDate': (today - timedelta(days=7)).isoformat(),
            'endDate': today.isoformat(),
        })
        assert len(response.json()['data']) == 2

    def test_cannot_read_other_students(self, student_client, make_student):
        other = make_student()
        assert student_client.get(f'/api/student/{other.id}/attendance').status_code == 403

    def test_admin_can_read_any_student(self, admin_client, student, records):
        assert admin_client.get(f'/api/student/{student.id}/attendance').status_code == 200

    def test_summary(self, student_client, records):
        today = timezone.localdate()
        data = student_client.get('/api/student/attendance/summary').json()['data']

        assert data['todayAttendedMeals'] == 2
        assert data['todayTotalPossibleMeals'] == 3
        assert data['thisWeekAttendedMeals'] == 2
        assert data['thisWeekTotalPossibleMeals'] == 21
        assert data['thisMonthAttendedMeals'] == 2
        assert data['thisMonthTotalPossibleMeals'] == calendar.monthrange(today.year, today.month)[1] * 3


@pytest.mark.django_db
class TestExports:
    """CSV, XLSX and PDF downloads"""

    def test_admin_csv(self, admin_client, records):
        response = admin_client.get('/api/admin/attendance/export', {'format': 'csv'})

        assert response.status_code == 200
        assert response['Content-Type'].startswith('text/csv')
        disposition = response['Content-Disposition']
        assert disposition.startswith('attachment; filename="admin_attendance_report_')
        assert disposition.endswith('.csv"')
        rows = list(csv.reader(io.StringIO(response.content.decode())))
        assert rows[0][:3] == ['User ID', 'User Name', 'Roll No.']
        assert len(rows) == 5

    def test_staff_xlsx(self, staff_client, records):
        response = staff_client.get('/api/staff/attendance/export', {'format': 'xlsx'})

        assert response.status_code == 200
        assert response.content[:2] == b'PK'
        assert 'staff_attendance_report_' in response['Content-Disposition']

    def test_student_pdf(self, student_client, student, records, today):
        response = student_client.get(f'/api/student/{student.id}/attendance/export', {
            'format': 'pdf',
            'startDate': (today - timedelta(days=1)).isoformat(),
            'endDate': today.isoformat(),
        })

        assert response.status_code == 200
        assert response.content.startswith(b'%PDF')
        assert 'student_attendance_report_' in response['Content-Disposition']

    def test_empty_pdf(self, admin_client):
        response = admin_client.get('/api/admin/attendance/export', {'format': 'pdf'})
        assert response.content.startswith(b'%PDF')

    @pytest.mark.parametrize('params', [{}, {'format': 'docx'}])
    def test_unsupported_format(self, admin_client, params):
        response = admin_client.get('/api/admin/attendance/export', params)

        assert response.status_code == 400
        assert 'format' in response.json()['message']

    def test_student_export_requires_dates(self, student_client, student):
        response = student_client.get(f'/api/student/{student.id}/attendance/export', {'format': 'csv'})
        assert response.status_code == 400
