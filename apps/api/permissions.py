import jwt
from rest_framework.authentication import BaseAuthentication
from rest_framework.permissions import BasePermission
from rest_framework.exceptions import AuthenticationFailed

from apps.core.models import User
from apps.utils.tokens import decode_access_token


class JWTAuthentication(BaseAuthentication):
	"""Bearer token authentication for login JWTs"""
	keyword = 'Bearer'

	def authenticate(self, request):
		auth_header = request.META.get('HTTP_AUTHORIZATION')
		if not auth_header or not auth_header.startswith(f'{self.keyword} '):
			return None

		token = auth_header.split(' ', 1)[1].strip()
		if not token:
			raise AuthenticationFailed('Not authorized, no token provided')

		try:
			payload = decode_access_token(token)
		except jwt.ExpiredSignatureError:
			raise AuthenticationFailed('Not authorized, token expired')
		except jwt.InvalidTokenError:
			raise AuthenticationFailed('Not authorized, token failed')

		try:
			user = User.objects.get(id=payload['id'])
		except User.DoesNotExist:
			raise AuthenticationFailed('Not authorized, user not found')

		# suspended or not-yet-approved accounts lose access immediately
		if not user.is_approved:
			raise AuthenticationFailed('Not authorized, account is not active')

		return (user, payload)

	def authenticate_header(self, request):
		return self.keyword


class HasRole(BasePermission):
	"""Allow users whose role is in `roles`"""
	roles = ()
	message = 'Forbidden: You do not have permission to access this resource.'

	def has_permission(self, request, view):
		user = request.user
		return bool(user and user.is_authenticated and getattr(user, 'role', None) in self.roles)


class IsStudent(HasRole):
	roles = (User.ROLE_STUDENT,)


class IsStaffOrAdmin(HasRole):
	roles = (User.ROLE_STAFF, User.ROLE_ADMIN)


class IsAdmin(HasRole):
	roles = (User.ROLE_ADMIN,)


class IsStudentOrAdmin(HasRole):
	roles = (User.ROLE_STUDENT, User.ROLE_ADMIN)
