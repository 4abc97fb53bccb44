import logging

from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ServiceError(APIException):
	"""Base error raised by the service layer; rendered as a JSON error body."""
	status_code = status.HTTP_400_BAD_REQUEST
	default_detail = 'Bad request.'
	default_code = 'bad_request'


class NotFoundError(ServiceError):
	status_code = status.HTTP_404_NOT_FOUND
	default_detail = 'Resource not found.'
	default_code = 'not_found'


class ConflictError(ServiceError):
	status_code = status.HTTP_409_CONFLICT
	default_detail = 'Conflict.'
	default_code = 'conflict'


class ForbiddenError(ServiceError):
	status_code = status.HTTP_403_FORBIDDEN
	default_detail = 'Forbidden: You do not have permission to access this resource.'
	default_code = 'forbidden'


class AuthenticationError(ServiceError):
	status_code = status.HTTP_401_UNAUTHORIZED
	default_detail = 'Invalid credentials.'
	default_code = 'authentication_failed'


class QRCodeError(ServiceError):
	default_detail = 'Invalid QR code.'
	default_code = 'invalid_qr'


def _flatten_errors(detail, prefix=''):
	if isinstance(detail, dict):
		errors = []
		for field, value in detail.items():
			name = f"{prefix}.{field}" if prefix else str(field)
			errors.extend(_flatten_errors(value, name))
		return errors
	if isinstance(detail, list):
		errors = []
		for item in detail:
			errors.extend(_flatten_errors(item, prefix))
		return errors
	return [{'field': prefix or None, 'msg': str(detail)}]


def api_exception_handler(exc, context):
	"""Render every error as {"success": false, "message": ..., "errors": [...]}."""
	response = exception_handler(exc, context)
	view = context.get('view')
	view_name = view.__class__.__name__ if view else 'unknown'

	if response is None:
		logger.exception(f"Unhandled error in {view_name}", exc_info=exc)
		return Response(
			{'success': False, 'message': 'Internal Server Error'},
			status=status.HTTP_500_INTERNAL_SERVER_ERROR
		)

	if isinstance(exc, ValidationError):
		errors = _flatten_errors(exc.detail)
		response.data = {
			'success': False,
			'message': errors[0]['msg'] if errors else 'Validation failed.',
			'errors': errors,
		}
	else:
		detail = getattr(exc, 'detail', str(exc))
		response.data = {'success': False, 'message': str(detail)}

	if response.status_code >= 500:
		logger.error(f"Request failed in {view_name}: {exc}")
	else:
		logger.warning(f"Request rejected in {view_name} ({response.status_code}): {response.data['message']}")
	return response
