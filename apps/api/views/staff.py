# Views for mess staff (scanner and dashboard)

import logging

from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes

from apps.core.services import attendance, reports
from apps.utils.exports import STAFF_COLUMNS, export_rows
from ..permissions import IsStaffOrAdmin
from ..responses import file_response, success_response
from ..serializers import DateRangeSerializer, ExportFormatSerializer, MarkQRSerializer

logger = logging.getLogger(__name__)


def client_ip(request):
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR')


@api_view(['POST'])
@permission_classes([IsStaffOrAdmin])
def mark_attendance_qr(request):
    """Redeem a scanned student QR code for the selected meal"""
    serializer = MarkQRSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    record = attendance.mark_attendance_by_qr(
        data['token'],
        data['meal_type'],
        marked_by=request.user,
        ip_address=client_ip(request),
        device_info=request.META.get('HTTP_USER_AGENT', ''),
    )

    return success_response(
        {
            'attendanceId': record.id,
            'userId': record.user_id,
            'studentName': record.user.name,
            'mealType': record.meal_type,
            'date': record.date.isoformat(),
        },
        f"Attendance marked for {record.user.name} ({record.meal_type}).",
        status.HTTP_201_CREATED
    )


@api_view(['GET'])
@permission_classes([IsStaffOrAdmin])
def today_attendance(request):
    today = timezone.localdate()
    records = reports.attendance_report({'start_date': today, 'end_date': today})
    return success_response(records, "Today's attendance records fetched for staff.")


@api_view(['GET'])
@permission_classes([IsStaffOrAdmin])
def attendance_summary(request):
    return success_response(reports.staff_today_summary(), "Today's attendance summary fetched for staff.")


@api_view(['GET'])
@permission_classes([IsStaffOrAdmin])
def attendance_export(request):
    """Export records for an optional date range"""
    export = ExportFormatSerializer(data=request.query_params)
    export.is_valid(raise_exception=True)
    query = DateRangeSerializer(data=request.query_params)
    query.is_valid(raise_exception=True)
    format_type = export.validated_data['format']
    filters = query.validated_data

    rows = reports.attendance_report(filters)
    content = export_rows(
        rows,
        STAFF_COLUMNS,
        format_type,
        'Staff Attendance Report',
        f"Period: {filters.get('start_date') or 'N/A'} to {filters.get('end_date') or 'N/A'}"
    )

    logger.info(f"Staff {request.user.id} exported {len(rows)} attendance rows as {format_type}")
    return file_response(content, 'staff', format_type)


@api_view(['GET'])
@permission_classes([IsStaffOrAdmin])
def dashboard_summary(request):
    return success_response(reports.staff_today_summary(), 'Dashboard summary fetched successfully.')


@api_view(['GET'])
@permission_classes([IsStaffOrAdmin])
def dashboard_recent_attendance(request):
    return success_response(reports.recent_attendance(), 'Recent attendance records fetched successfully.')
