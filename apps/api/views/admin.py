# Views for the admin panel

import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes

from apps.core.services import attendance, mess_plans, reports, users
from apps.utils.exports import ADMIN_COLUMNS, export_rows
from ..permissions import IsAdmin
from ..responses import file_response, success_response
from ..serializers import (
    AdminMessPlanSerializer, AttendanceFilterSerializer, ExportFormatSerializer,
    ManualAttendanceSerializer, MessPlanRejectSerializer, UserSerializer, UserWriteSerializer,
)

logger = logging.getLogger(__name__)


@api_view(['GET'])
@permission_classes([IsAdmin])
def dashboard_stats(request):
    return success_response(reports.admin_dashboard_stats())


@api_view(['GET', 'POST'])
@permission_classes([IsAdmin])
def user_list(request):
    if request.method == 'GET':
        return success_response(UserSerializer(users.list_users(), many=True).data)

    serializer = UserWriteSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = dict(serializer.validated_data)
    data.pop('new_password', None)

    user = users.create_user(**data)
    return success_response(
        UserSerializer(users.get_user(user.id)).data,
        'User created successfully.',
        status.HTTP_201_CREATED
    )


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAdmin])
def user_detail(request, user_id):
    """Read, update (including approval or suspension) or delete one user"""
    if request.method == 'GET':
        return success_response(UserSerializer(users.get_user(user_id)).data)

    if request.method == 'DELETE':
        users.delete_user(user_id, acting_user=request.user)
        return success_response(None, 'User deleted successfully.')

    serializer = UserWriteSerializer(data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    data = dict(serializer.validated_data)
    data.pop('password', None)

    user = users.update_user(user_id, **data)
    return success_response(UserSerializer(users.get_user(user.id)).data, 'User updated successfully.')


@api_view(['GET'])
@permission_classes([IsAdmin])
def mess_plan_list(request):
    plans = mess_plans.get_all_plans()
    return success_response(AdminMessPlanSerializer(plans, many=True).data)


@api_view(['PUT', 'POST'])
@permission_classes([IsAdmin])
def approve_mess_plan(request, plan_id):
    plan = mess_plans.approve_plan(plan_id)
    return success_response(AdminMessPlanSerializer(plan).data, 'Mess plan approved successfully.')


@api_view(['PUT', 'POST'])
@permission_classes([IsAdmin])
def reject_mess_plan(request, plan_id):
    serializer = MessPlanRejectSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    plan = mess_plans.reject_plan(plan_id, serializer.validated_data['rejection_reason'])
    return success_response(AdminMessPlanSerializer(plan).data, 'Mess plan rejected successfully.')


@api_view(['GET', 'POST'])
@permission_classes([IsAdmin])
def attendance_list(request):
    """Filtered attendance report, or a manual attendance entry"""
    if request.method == 'GET':
        query = AttendanceFilterSerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        return success_response(reports.attendance_report(query.validated_data))

    serializer = ManualAttendanceSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    record = attendance.mark_manual(
        data['user_id'], data['date'], data['meal_type'], request.user, data.get('notes')
    )
    return success_response(
        {'attendanceId': record.id},
        'Manual attendance recorded successfully.',
        status.HTTP_201_CREATED
    )


@api_view(['GET'])
@permission_classes([IsAdmin])
def attendance_summary(request):
    return success_response(reports.admin_attendance_summary())


@api_view(['GET'])
@permission_classes([IsAdmin])
def attendance_export(request):
    export = ExportFormatSerializer(data=request.query_params)
    export.is_valid(raise_exception=True)
    query = AttendanceFilterSerializer(data=request.query_params)
    query.is_valid(raise_exception=True)
    format_type = export.validated_data['format']
    filters = query.validated_data

    rows = reports.attendance_report(filters)
    content = export_rows(
        rows,
        ADMIN_COLUMNS,
        format_type,
        'Admin Attendance Report',
        f"Period: {filters.get('start_date') or 'N/A'} to {filters.get('end_date') or 'N/A'}"
    )

    logger.info(f"Admin {request.user.id} exported {len(rows)} attendance rows as {format_type}")
    return file_response(content, 'admin', format_type)


@api_view(['GET'])
@permission_classes([IsAdmin])
def approved_students(request):
    return success_response(reports.approved_students())
