from django.http import HttpResponse
from rest_framework import status
from rest_framework.response import Response

from apps.utils.exports import build_filename, content_type_for


def success_response(data=None, message=None, status_code=status.HTTP_200_OK):
	body = {'success': True, 'data': data}
	if message:
		body['message'] = message
	return Response(body, status=status_code)


def file_response(content, scope, format_type):
	"""Return export bytes as a download attachment"""
	response = HttpResponse(content, content_type=content_type_for(format_type))
	filename = build_filename(scope, format_type)
	response['Content-Disposition'] = f'attachment; filename="{filename}"'
	return response
