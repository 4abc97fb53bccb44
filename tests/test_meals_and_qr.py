import base64
from datetime import time, timedelta

import jwt
import pytest
from django.conf import settings
from django.utils import timezone

from apps.utils.tokens import create_access_token
from apps.utils.meals import get_active_meal_type, get_meal_windows, is_valid_meal_type
from apps.utils.qr_utils import generate_qr_image, generate_qr_payload, verify_qr_payload


@pytest.mark.parametrize('moment, expected', [
    (time(6, 59), None),
    (time(7, 0), 'breakfast'),
    (time(10, 29), 'breakfast'),
    (time(10, 30), None),
    (time(12, 0), 'lunch'),
    (time(15, 30), None),
    (time(19, 0), 'dinner'),
    (time(23, 29), 'dinner'),
    (time(23, 30), None),
])
def test_active_meal_windows(moment, expected):
    """Windows include their start and exclude their end"""
    assert get_active_meal_type(moment) == expected


def test_active_meal_accepts_datetime():
    moment = timezone.localtime().replace(hour=13, minute=15)
    assert get_active_meal_type(moment) == 'lunch'


def test_active_meal_rejects_other_types():
    with pytest.raises(TypeError):
        get_active_meal_type('13:00')


def test_meal_windows_follow_config(settings):
    settings.MESS_CONFIG = dict(settings.MESS_CONFIG, meal_windows={
        'breakfast': {'start': '06:00', 'end': '08:00'},
    })
    assert list(get_meal_windows()) == ['breakfast']
    assert get_active_meal_type(time(7, 30)) == 'breakfast'
    assert get_active_meal_type(time(13, 0)) is None


def test_is_valid_meal_type():
    assert is_valid_meal_type('dinner')
    assert not is_valid_meal_type('snacks')


def test_qr_payload_carries_meal_claims():
    today = timezone.localdate()
    token, expires_at = generate_qr_payload(42, today, 'lunch')

    claims, message = verify_qr_payload(token)

    assert message == 'Valid'
    assert claims['userId'] == 42
    assert claims['date'] == today.isoformat()
    assert claims['mealType'] == 'lunch'
    assert claims['typ'] == 'meal_qr'
    lifetime = expires_at - timezone.now()
    assert timedelta(minutes=4) < lifetime <= timedelta(minutes=5)


def test_expired_qr_payload_is_rejected():
    issued = timezone.now() - timedelta(minutes=settings.MESS_CONFIG['qr_expiry_minutes'] + 1)
    token, _ = generate_qr_payload(1, timezone.localdate(), 'dinner', now=issued)

    claims, message = verify_qr_payload(token)

    assert claims is None
    assert 'expired' in message


def test_tampered_qr_payload_is_rejected():
    token, _ = generate_qr_payload(1, timezone.localdate(), 'dinner')
    header, payload, signature = token.split('.')
    forged = '.'.join([header, payload, signature[::-1]])

    claims, message = verify_qr_payload(forged)

    assert claims is None
    assert message.startswith('Invalid QR code')


def test_token_with_wrong_type_is_rejected():
    now = timezone.now()
    token = jwt.encode({
        'userId': 1,
        'date': timezone.localdate().isoformat(),
        'mealType': 'lunch',
        'typ': 'access',
        'exp': int((now + timedelta(minutes=5)).timestamp()),
    }, settings.QR_SECRET, algorithm='HS256')

    claims, _ = verify_qr_payload(token)

    assert claims is None


@pytest.mark.django_db
def test_login_token_is_not_a_meal_token(student):
    claims, message = verify_qr_payload(create_access_token(student))
    assert claims is None
    assert message.startswith('Invalid QR code')


def test_qr_image_is_base64_png():
    image = generate_qr_image('some-token')
    assert base64.b64decode(image).startswith(b'\x89PNG')
