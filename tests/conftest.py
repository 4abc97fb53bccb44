"""
Hostel mess - test configuration and fixtures
"""
from datetime import timedelta

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from apps.core.models import User, StudentProfile, StaffProfile, MessPlan
from apps.utils.tokens import create_access_token

PASSWORD = 'secret123'


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def make_student(db):
    """Factory for student users with a profile"""
    counter = {'n': 0}

    def _make(status=User.STATUS_APPROVED, name=None, **profile):
        counter['n'] += 1
        n = counter['n']
        user = User.objects.create_user(
            email=f'student{n}@hostel.test',
            password=PASSWORD,
            name=name or f'Student {n}',
            role=User.ROLE_STUDENT,
            status=status,
        )
        StudentProfile.objects.create(
            user=user,
            roll_no=profile.get('roll_no', f'R{n:03d}'),
            enrollment_no=profile.get('enrollment_no', f'EN{n:05d}'),
            branch=profile.get('branch', 'CSE'),
            year=profile.get('year', '2'),
            phone=profile.get('phone', f'98765{n:05d}'),
        )
        return user

    return _make


@pytest.fixture
def student(make_student):
    return make_student(name='Asha Verma', roll_no='CS101', enrollment_no='EN2024001')


@pytest.fixture
def staff_user(db):
    user = User.objects.create_user(
        email='staff@hostel.test',
        password=PASSWORD,
        name='Mess Staff',
        role=User.ROLE_STAFF,
        status=User.STATUS_APPROVED,
    )
    StaffProfile.objects.create(user=user, employee_id='EMP001', position='Counter')
    return user


@pytest.fixture
def admin_user(db):
    return User.objects.create_superuser(email='admin@hostel.test', password=PASSWORD, name='Warden')


@pytest.fixture
def client_for():
    """Factory returning an APIClient authenticated as the given user"""
    def _client(user):
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f'Bearer {create_access_token(user)}')
        return client
    return _client


@pytest.fixture
def student_client(client_for, student):
    return client_for(student)


@pytest.fixture
def staff_client(client_for, staff_user):
    return client_for(staff_user)


@pytest.fixture
def admin_client(client_for, admin_user):
    return client_for(admin_user)


@pytest.fixture
def today():
    return timezone.localdate()


@pytest.fixture
def approved_plan(student, today):
    return MessPlan.objects.create(
        student=student,
        start_date=today - timedelta(days=3),
        end_date=today + timedelta(days=10),
        status=MessPlan.STATUS_APPROVED,
    )


@pytest.fixture
def serving(monkeypatch):
    """Pretend the given meal (or None) is being served right now"""
    def _serve(meal_type):
        monkeypatch.setattr('apps.utils.meals.get_active_meal_type', lambda now=None: meal_type)
    return _serve
