import base64
from datetime import timedelta
from io import BytesIO

import jwt
import qrcode
from django.conf import settings
from django.utils import timezone

QR_TOKEN_TYPE = 'meal_qr'
QR_ALGORITHM = 'HS256'


def generate_qr_payload(user_id, day, meal_type, now=None):
	"""Sign a short-lived meal token for one student, one day and one meal.

	Returns (token, expires_at).
	"""
	issued_at = now or timezone.now()
	expires_at = issued_at + timedelta(minutes=settings.MESS_CONFIG['qr_expiry_minutes'])
	payload = {
		'userId': int(user_id),
		'date': day.isoformat() if hasattr(day, 'isoformat') else str(day),
		'mealType': meal_type,
		'typ': QR_TOKEN_TYPE,
		'iat': int(issued_at.timestamp()),
		'exp': int(expires_at.timestamp()),
	}
	token = jwt.encode(payload, settings.QR_SECRET, algorithm=QR_ALGORITHM)
	return token, expires_at


def verify_qr_payload(token):
	"""Verify a meal token and return (claims, message).

	claims is None when the token is expired, tampered with, or not a meal token.
	"""
	try:
		claims = jwt.decode(
			token,
			settings.QR_SECRET,
			algorithms=[QR_ALGORITHM],
			options={'require': ['exp', 'userId', 'date', 'mealType']},
		)
	except jwt.ExpiredSignatureError:
		return None, "QR code has expired. Please ask the student to generate a new QR code."
	except jwt.InvalidTokenError:
		return None, "Invalid QR code. Please make sure a valid QR code was scanned."

	if claims.get('typ') != QR_TOKEN_TYPE:
		return None, "Invalid QR code. Please make sure a valid QR code was scanned."

	try:
		claims['userId'] = int(claims['userId'])
	except (TypeError, ValueError):
		return None, "Invalid QR code payload."

	return claims, "Valid"


def generate_qr_image(payload):
	"""Generate QR code image from payload"""
	qr = qrcode.QRCode(
		version=None,
		error_correction=qrcode.constants.ERROR_CORRECT_L,
		box_size=10,
		border=4,
	)
	qr.add_data(payload)
	qr.make(fit=True)

	img = qr.make_image(fill_color="black", back_color="white")

	# base64 PNG for JSON transport
	buffer = BytesIO()
	img.save(buffer, format='PNG')
	buffer.seek(0)

	return base64.b64encode(buffer.getvalue()).decode()
