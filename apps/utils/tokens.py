import jwt
from django.conf import settings
from django.utils import timezone

ACCESS_TOKEN_TYPE = 'access'


def create_access_token(user):
	now = timezone.now()
	payload = {
		'id': user.id,
		'role': user.role,
		'typ': ACCESS_TOKEN_TYPE,
		'iat': int(now.timestamp()),
		'exp': int((now + settings.JWT_EXPIRATION).timestamp()),
	}
	return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token):
	"""Decode a login token; raises jwt.InvalidTokenError on any problem."""
	payload = jwt.decode(
		token,
		settings.JWT_SECRET,
		algorithms=[settings.JWT_ALGORITHM],
		options={'require': ['exp', 'id', 'role']},
	)
	if payload.get('typ') != ACCESS_TOKEN_TYPE:
		raise jwt.InvalidTokenError('Not an access token')
	return payload
