# Views for the student dashboard

import logging

from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes

from apps.core.services import attendance, mess_plans, notifications, profiles
from apps.utils.exports import STUDENT_COLUMNS, export_rows
from ..permissions import IsStudent, IsStudentOrAdmin
from ..responses import file_response, success_response
from ..serializers import (
    DayQuerySerializer, ExportFormatSerializer, GenerateQRSerializer, MessPlanRequestSerializer,
    MessPlanSerializer, NotificationSerializer, ProfileUpdateSerializer, RequiredDateRangeSerializer,
    StudentAttendanceSerializer, StudentProfileDetailSerializer,
)

logger = logging.getLogger(__name__)


@api_view(['GET', 'PUT', 'PATCH'])
@permission_classes([IsStudent])
def profile(request):
    if request.method == 'GET':
        student = profiles.get_student_profile(request.user)
        return success_response(StudentProfileDetailSerializer(student).data)

    serializer = ProfileUpdateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    student = profiles.update_student_profile(request.user, **serializer.validated_data)

    return success_response(
        StudentProfileDetailSerializer(student).data,
        'Profile updated successfully.'
    )


@api_view(['GET', 'POST'])
@permission_classes([IsStudent])
def mess_plan_list(request):
    """List own mess plans or request a new one"""
    if request.method == 'GET':
        plans = mess_plans.get_student_plans(request.user)
        return success_response(MessPlanSerializer(plans, many=True).data)

    serializer = MessPlanRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    plan = mess_plans.create_request(request.user, **serializer.validated_data)

    return success_response(
        MessPlanSerializer(plan).data,
        'Mess plan request submitted successfully. Awaiting admin approval.',
        status.HTTP_201_CREATED
    )


@api_view(['GET'])
@permission_classes([IsStudent])
def active_mess_plan(request):
    plan = mess_plans.get_active_plan(request.user)
    if plan is None:
        return success_response(None, 'No active mess plan found for this student.')
    return success_response(MessPlanSerializer(plan).data)


@api_view(['POST'])
@permission_classes([IsStudent])
def generate_qr(request):
    """Issue a meal QR code for the meal being served now"""
    serializer = GenerateQRSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    qr = attendance.issue_meal_qr(request.user, data['user_id'], data['date'], data['meal_type'])

    return success_response(
        qr,
        'QR code generated successfully. Please show it to the mess staff within 5 minutes.'
    )


@api_view(['GET'])
@permission_classes([IsStudent])
def recent_notifications(request):
    items = notifications.get_recent_notifications(request.user)
    return success_response(NotificationSerializer(items, many=True).data)


@api_view(['GET'])
@permission_classes([IsStudent])
def attendance_summary(request):
    return success_response(attendance.get_student_summary(request.user.id))


@api_view(['GET'])
@permission_classes([IsStudentOrAdmin])
def student_attendance(request, user_id):
    """Attendance for one day (?date=YYYY-MM-DD, default today)"""
    attendance.ensure_own_records(request.user, user_id)

    query = DayQuerySerializer(data=request.query_params)
    query.is_valid(raise_exception=True)
    day = query.validated_data.get('date') or timezone.localdate()

    records = attendance.get_student_records(user_id, day)
    return success_response(StudentAttendanceSerializer(records, many=True).data)


@api_view(['GET'])
@permission_classes([IsStudentOrAdmin])
def student_attendance_range(request, user_id):
    attendance.ensure_own_records(request.user, user_id)

    query = RequiredDateRangeSerializer(data=request.query_params)
    query.is_valid(raise_exception=True)

    records = attendance.get_student_records(user_id, **query.validated_data)
    return success_response(
        StudentAttendanceSerializer(records, many=True).data,
        'Student attendance records fetched successfully.'
    )


@api_view(['GET'])
@permission_classes([IsStudentOrAdmin])
def student_attendance_export(request, user_id):
    """Download own attendance for a date range as csv, xlsx or pdf"""
    attendance.ensure_own_records(request.user, user_id)

    query = RequiredDateRangeSerializer(data=request.query_params)
    query.is_valid(raise_exception=True)
    export = ExportFormatSerializer(data=request.query_params)
    export.is_valid(raise_exception=True)
    format_type = export.validated_data['format']
    start_date, end_date = query.validated_data['start_date'], query.validated_data['end_date']

    rows = [
        {'date': record.date, 'mealType': record.meal_type, 'markedAt': record.marked_at}
        for record in attendance.get_student_records(user_id, start_date, end_date)
    ]
    content = export_rows(
        rows,
        STUDENT_COLUMNS,
        format_type,
        'Student Attendance Report',
        f"Period: {start_date} to {end_date}"
    )

    logger.info(f"User {request.user.id} exported attendance of student {user_id} as {format_type}")
    return file_response(content, 'student', format_type)
