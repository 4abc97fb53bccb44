from django.contrib import admin

from .models import User, StudentProfile, StaffProfile, MessPlan, Attendance, Notification, ActivityLog


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
	list_display = ('id', 'name', 'email', 'role', 'status', 'created_at')
	list_filter = ('role', 'status')
	search_fields = ('name', 'email')
	exclude = ('password',)


@admin.register(MessPlan)
class MessPlanAdmin(admin.ModelAdmin):
	list_display = ('id', 'student', 'start_date', 'end_date', 'status')
	list_filter = ('status',)


@admin.register(Attendance)
class AttendanceAdmin(admin.ModelAdmin):
	list_display = ('id', 'user', 'date', 'meal_type', 'marked_by', 'is_manual_entry')
	list_filter = ('meal_type', 'is_manual_entry', 'date')


admin.site.register(StudentProfile)
admin.site.register(StaffProfile)
admin.site.register(Notification)
admin.site.register(ActivityLog)
