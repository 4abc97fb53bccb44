# URLs for api app
from django.urls import path
from .views import admin, auth, general, staff, student

urlpatterns = [
	path('auth/register', auth.register, name='auth_register'),
	path('auth/login', auth.login, name='auth_login'),
	path('auth/me', auth.me, name='auth_me'),

	path('general/active-meal', general.active_meal, name='active_meal'),

	path('student/profile', student.profile, name='student_profile'),
	path('student/mess-plans', student.mess_plan_list, name='student_mess_plans'),
	path('student/mess-plan/active', student.active_mess_plan, name='student_active_mess_plan'),
	path('student/generate-qr', student.generate_qr, name='student_generate_qr'),
	path('student/notifications/recent', student.recent_notifications, name='student_recent_notifications'),
	path('student/attendance/summary', student.attendance_summary, name='student_attendance_summary'),
	path('student/<int:user_id>/attendance', student.student_attendance, name='student_attendance'),
	path('student/<int:user_id>/attendance/range', student.student_attendance_range, name='student_attendance_range'),
	path('student/<int:user_id>/attendance/export', student.student_attendance_export, name='student_attendance_export'),

	path('staff/attendance/mark-qr', staff.mark_attendance_qr, name='staff_mark_qr'),
	path('staff/attendance', staff.today_attendance, name='staff_attendance'),
	path('staff/attendance/summary', staff.attendance_summary, name='staff_attendance_summary'),
	path('staff/attendance/export', staff.attendance_export, name='staff_attendance_export'),
	path('staff/dashboard/summary', staff.dashboard_summary, name='staff_dashboard_summary'),
	path('staff/dashboard/recent-attendance', staff.dashboard_recent_attendance, name='staff_recent_attendance'),

	path('admin/dashboard-stats', admin.dashboard_stats, name='admin_dashboard_stats'),
	path('admin/users', admin.user_list, name='admin_users'),
	path('admin/users/<int:user_id>', admin.user_detail, name='admin_user_detail'),
	path('admin/mess-plans', admin.mess_plan_list, name='admin_mess_plans'),
	path('admin/mess-plans/<int:plan_id>/approve', admin.approve_mess_plan, name='admin_approve_mess_plan'),
	path('admin/mess-plans/<int:plan_id>/reject', admin.reject_mess_plan, name='admin_reject_mess_plan'),
	path('admin/attendance', admin.attendance_list, name='admin_attendance'),
	path('admin/attendance/summary', admin.attendance_summary, name='admin_attendance_summary'),
	path('admin/attendance/export', admin.attendance_export, name='admin_attendance_export'),
	path('admin/students/approved', admin.approved_students, name='admin_approved_students'),
]
