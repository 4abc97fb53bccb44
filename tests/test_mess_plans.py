from datetime import timedelta
from io import StringIO

import pytest
from django.core.management import call_command

from apps.core.models import MessPlan, Notification
from apps.core.services.mess_plans import cleanup_old_plans, subtract_months
from apps.core.tasks import cleanup_old_mess_plans

PLANS_URL = '/api/student/mess-plans'


def plan_data(start, end):
    return {'startDate': start.isoformat(), 'endDate': end.isoformat()}


def make_plan(student, start, end, status=MessPlan.STATUS_PENDING):
    return MessPlan.objects.create(student=student, start_date=start, end_date=end, status=status)


@pytest.mark.django_db
class TestMessPlanRequests:
    """Student mess plan requests"""

    def test_create_pending_plan(self, student_client, student, today):
        response = student_client.post(PLANS_URL, plan_data(today, today + timedelta(days=30)), format='json')

        assert response.status_code == 201
        plan = MessPlan.objects.get(student=student)
        assert plan.status == MessPlan.STATUS_PENDING
        assert response.json()['data']['startDate'] == today.isoformat()

    def test_missing_dates(self, student_client):
        response = student_client.post(PLANS_URL, {}, format='json')
        assert response.status_code == 400

    def test_unparsable_date(self, student_client):
        response = student_client.post(PLANS_URL, {'startDate': '31-02-2025', 'endDate': '2025-03-01'}, format='json')
        assert response.status_code == 400

    def test_end_before_start(self, student_client, today):
        response = student_client.post(PLANS_URL, plan_data(today + timedelta(days=5), today), format='json')
        assert response.status_code == 400

    def test_start_in_past(self, student_client, today):
        response = student_client.post(PLANS_URL, plan_data(today - timedelta(days=1), today + timedelta(days=5)), format='json')
        assert response.status_code == 400

    @pytest.mark.parametrize('status', [MessPlan.STATUS_PENDING, MessPlan.STATUS_APPROVED])
    def test_overlap_is_inclusive(self, student_client, student, today, status):
        make_plan(student, today, today + timedelta(days=10), status)

        response = student_client.post(
            PLANS_URL, plan_data(today + timedelta(days=10), today + timedelta(days=20)), format='json'
        )

        assert response.status_code == 409

    def test_adjacent_plan_is_allowed(self, student_client, student, today):
        make_plan(student, today, today + timedelta(days=10), MessPlan.STATUS_APPROVED)

        response = student_client.post(
            PLANS_URL, plan_data(today + timedelta(days=11), today + timedelta(days=20)), format='json'
        )

        assert response.status_code == 201

    def test_rejected_plan_does_not_block(self, student_client, student, today):
        make_plan(student, today, today + timedelta(days=10), MessPlan.STATUS_REJECTED)

        response = student_client.post(PLANS_URL, plan_data(today, today + timedelta(days=10)), format='json')

        assert response.status_code == 201

    def test_other_students_plans_do_not_block(self, student_client, make_student, today):
        make_plan(make_student(), today, today + timedelta(days=10), MessPlan.STATUS_APPROVED)

        response = student_client.post(PLANS_URL, plan_data(today, today + timedelta(days=10)), format='json')

        assert response.status_code == 201

    def test_list_own_plans_newest_first(self, student_client, student, make_student, today):
        older = make_plan(student, today, today + timedelta(days=5))
        newer = make_plan(student, today + timedelta(days=6), today + timedelta(days=9))
        make_plan(make_student(), today, today + timedelta(days=5))

        response = student_client.get(PLANS_URL)

        ids = [plan['id'] for plan in response.json()['data']]
        assert ids == [newer.id, older.id]

    def test_active_plan(self, student_client, approved_plan):
        response = student_client.get('/api/student/mess-plan/active')

        assert response.status_code == 200
        assert response.json()['data']['id'] == approved_plan.id

    def test_no_active_plan(self, student_client, student, today):
        make_plan(student, today, today + timedelta(days=5))

        response = student_client.get('/api/student/mess-plan/active')

        assert response.status_code == 200
        assert response.json()['data'] is None


@pytest.mark.django_db
class TestMessPlanDecisions:
    """Admin approval workflow"""

    def test_list_all_includes_student_details(self, admin_client, student, today):
        make_plan(student, today, today + timedelta(days=5))

        response = admin_client.get('/api/admin/mess-plans')

        plan = response.json()['data'][0]
        assert plan['studentName'] == 'Asha Verma'
        assert plan['enrollmentNumber'] == 'EN2024001'

    def test_approve_notifies_student(self, admin_client, student, today, django_capture_on_commit_callbacks):
        plan = make_plan(student, today, today + timedelta(days=5))

        with django_capture_on_commit_callbacks(execute=True):
            response = admin_client.put(f'/api/admin/mess-plans/{plan.id}/approve')

        assert response.status_code == 200
        plan.refresh_from_db()
        assert plan.status == MessPlan.STATUS_APPROVED
        notification = Notification.objects.get(user=student)
        assert notification.type == Notification.TYPE_MESS_PLAN
        assert 'approved' in notification.message

    def test_reject_requires_reason(self, admin_client, student, today):
        plan = make_plan(student, today, today + timedelta(days=5))

        response = admin_client.put(f'/api/admin/mess-plans/{plan.id}/reject', {}, format='json')

        assert response.status_code == 400
        plan.refresh_from_db()
        assert plan.status == MessPlan.STATUS_PENDING

    def test_reject_with_reason(self, admin_client, student, today, django_capture_on_commit_callbacks):
        plan = make_plan(student, today, today + timedelta(days=5))

        with django_capture_on_commit_callbacks(execute=True):
            response = admin_client.put(
                f'/api/admin/mess-plans/{plan.id}/reject', {'rejectionReason': 'Fees unpaid'}, format='json'
            )

        assert response.status_code == 200
        plan.refresh_from_db()
        assert plan.status == MessPlan.STATUS_REJECTED
        assert plan.rejection_reason == 'Fees unpaid'
        assert 'Fees unpaid' in Notification.objects.get(user=student).message

    def test_only_pending_plans_can_be_decided(self, admin_client, approved_plan):
        response = admin_client.put(f'/api/admin/mess-plans/{approved_plan.id}/approve')
        assert response.status_code == 409

    def test_unknown_plan(self, admin_client):
        assert admin_client.put('/api/admin/mess-plans/9999/approve').status_code == 404

    def test_students_cannot_decide(self, student_client, student, today):
        plan = make_plan(student, today, today + timedelta(days=5))
        assert student_client.put(f'/api/admin/mess-plans/{plan.id}/approve').status_code == 403


@pytest.mark.django_db
class TestRetentionCleanup:
    """Deleting decided plans past the retention period"""

    @pytest.fixture
    def plans(self, student, today):
        cutoff = subtract_months(today, 1)
        return {
            'old_approved': make_plan(student, cutoff - timedelta(days=20), cutoff - timedelta(days=1), MessPlan.STATUS_APPROVED),
            'old_rejected': make_plan(student, cutoff - timedelta(days=20), cutoff - timedelta(days=2), MessPlan.STATUS_REJECTED),
            'old_pending': make_plan(student, cutoff - timedelta(days=20), cutoff - timedelta(days=1)),
            'recent': make_plan(student, cutoff - timedelta(days=5), cutoff, MessPlan.STATUS_APPROVED),
        }

    def test_cleanup_service(self, plans):
        assert cleanup_old_plans(1) == 2
        remaining = set(MessPlan.objects.values_list('id', flat=True))
        assert remaining == {plans['old_pending'].id, plans['recent'].id}

    def test_cleanup_command(self, plans):
        out = StringIO()
        call_command('cleanup_mess_plans', '--months', '1', stdout=out)

        assert 'Deleted 2 old mess plans.' in out.getvalue()
        assert MessPlan.objects.count() == 2

    def test_cleanup_task(self, plans):
        assert cleanup_old_mess_plans.apply(kwargs={'months': 1}).get() == 2


def test_subtract_months_clamps_day():
    from datetime import date

    assert subtract_months(date(2025, 3, 31), 1) == date(2025, 2, 28)
    assert subtract_months(date(2025, 1, 15), 1) == date(2024, 12, 15)
    assert subtract_months(date(2024, 5, 10), 0) == date(2024, 5, 10)
