from rest_framework import serializers

from apps.core.models import User, MessPlan, Notification, StudentProfile, phone_validator
from apps.utils.exports import EXPORT_FORMATS
from apps.utils.meals import MEAL_TYPES

MANAGED_ROLES = [User.ROLE_STUDENT, User.ROLE_STAFF]


class PhoneField(serializers.CharField):
	def __init__(self, **kwargs):
		kwargs.setdefault('min_length', 10)
		kwargs.setdefault('max_length', 15)
		kwargs.setdefault('validators', [phone_validator])
		super().__init__(**kwargs)


# Input

class RegisterSerializer(serializers.Serializer):
	name = serializers.CharField(max_length=100)
	email = serializers.EmailField()
	password = serializers.CharField(min_length=6, write_only=True)
	rollNo = serializers.CharField(source='roll_no', max_length=20)
	enrollmentNo = serializers.CharField(source='enrollment_no', max_length=30)
	branch = serializers.CharField(max_length=100)
	year = serializers.CharField(max_length=10)
	phone = PhoneField()
	course = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)


class LoginSerializer(serializers.Serializer):
	email = serializers.EmailField()
	password = serializers.CharField(write_only=True)
	role = serializers.ChoiceField(choices=[choice for choice, _ in User.ROLE_CHOICES])


class StudentDataSerializer(serializers.Serializer):
	rollNo = serializers.CharField(source='roll_no', max_length=20)
	enrollmentNo = serializers.CharField(source='enrollment_no', max_length=30)
	branch = serializers.CharField(max_length=100)
	year = serializers.CharField(max_length=10)
	course = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)


class StaffDataSerializer(serializers.Serializer):
	employeeId = serializers.CharField(source='employee_id', max_length=30)
	position = serializers.CharField(max_length=100)


class UserWriteSerializer(serializers.Serializer):
	"""Admin create/update payload; pass partial=True for updates"""
	name = serializers.CharField(max_length=100)
	email = serializers.EmailField()
	password = serializers.CharField(min_length=6, write_only=True)
	newPassword = serializers.CharField(
		source='new_password', min_length=6, write_only=True, required=False, allow_blank=True
	)
	role = serializers.ChoiceField(choices=MANAGED_ROLES)
	status = serializers.ChoiceField(choices=[choice for choice, _ in User.STATUS_CHOICES], default=User.STATUS_PENDING)
	phone = PhoneField(required=False, allow_null=True)
	studentData = StudentDataSerializer(source='student_data', required=False, allow_null=True)
	staffData = StaffDataSerializer(source='staff_data', required=False, allow_null=True)

	STUDENT_DATA_FIELDS = {'roll_no': 'rollNo', 'enrollment_no': 'enrollmentNo', 'branch': 'branch', 'year': 'year'}
	STAFF_DATA_FIELDS = {'employee_id': 'employeeId', 'position': 'position'}

	def _require_complete(self, data, fields, name):
		# partial updates propagate to nested serializers, so check their keys here
		missing = [label for key, label in fields.items() if key not in data]
		if missing:
			raise serializers.ValidationError({name: f"Missing required fields: {', '.join(missing)}."})

	def validate(self, attrs):
		role = attrs.get('role')
		# on updates an existing profile can stand in for the role data
		if not self.partial:
			if role == User.ROLE_STUDENT and not attrs.get('student_data'):
				raise serializers.ValidationError({'studentData': 'Student data is required for student role.'})
			if role == User.ROLE_STAFF and not attrs.get('staff_data'):
				raise serializers.ValidationError({'staffData': 'Staff data is required for staff role.'})
		if attrs.get('student_data'):
			self._require_complete(attrs['student_data'], self.STUDENT_DATA_FIELDS, 'studentData')
		if attrs.get('staff_data'):
			self._require_complete(attrs['staff_data'], self.STAFF_DATA_FIELDS, 'staffData')
		if attrs.get('new_password') == '':
			attrs.pop('new_password')
		return attrs


class MessPlanRequestSerializer(serializers.Serializer):
	startDate = serializers.DateField(source='start_date')
	endDate = serializers.DateField(source='end_date')


class MessPlanRejectSerializer(serializers.Serializer):
	rejectionReason = serializers.CharField(source='rejection_reason', max_length=1000)


class ProfileUpdateSerializer(serializers.Serializer):
	name = serializers.CharField(max_length=100, required=False)
	phone = PhoneField(required=False)
	course = serializers.CharField(max_length=100, required=False, allow_blank=True)
	year = serializers.CharField(max_length=10, required=False)
	branch = serializers.CharField(max_length=100, required=False)


class GenerateQRSerializer(serializers.Serializer):
	userId = serializers.IntegerField(source='user_id', min_value=1)
	date = serializers.DateField()
	mealType = serializers.ChoiceField(source='meal_type', choices=MEAL_TYPES)


class MarkQRSerializer(serializers.Serializer):
	"""Scanned token; older scanner clients send it as studentUserId"""
	qrData = serializers.CharField(source='token', required=False)
	studentUserId = serializers.CharField(source='legacy_token', required=False)
	mealType = serializers.ChoiceField(source='meal_type', choices=MEAL_TYPES)

	def validate(self, attrs):
		token = attrs.pop('token', None) or attrs.pop('legacy_token', None)
		attrs.pop('legacy_token', None)
		if not token:
			raise serializers.ValidationError({'qrData': 'QR code data is required.'})
		attrs['token'] = token
		return attrs


class ManualAttendanceSerializer(serializers.Serializer):
	userId = serializers.IntegerField(source='user_id', min_value=1)
	date = serializers.DateField()
	mealType = serializers.ChoiceField(source='meal_type', choices=MEAL_TYPES)
	notes = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=1000)


class DayQuerySerializer(serializers.Serializer):
	date = serializers.DateField(required=False)


class DateRangeSerializer(serializers.Serializer):
	startDate = serializers.DateField(source='start_date', required=False)
	endDate = serializers.DateField(source='end_date', required=False)

	def validate(self, attrs):
		start, end = attrs.get('start_date'), attrs.get('end_date')
		if start and end and end < start:
			raise serializers.ValidationError({'endDate': 'End date cannot be before start date.'})
		return attrs


class RequiredDateRangeSerializer(DateRangeSerializer):
	startDate = serializers.DateField(source='start_date')
	endDate = serializers.DateField(source='end_date')


class AttendanceFilterSerializer(DateRangeSerializer):
	mealType = serializers.ChoiceField(source='meal_type', choices=MEAL_TYPES, required=False)
	studentId = serializers.IntegerField(source='student_id', min_value=1, required=False)
	searchQuery = serializers.CharField(source='search_query', required=False, allow_blank=True)
	isManualEntry = serializers.BooleanField(source='is_manual_entry', required=False, allow_null=True, default=None)
	limit = serializers.IntegerField(min_value=1, max_value=1000, required=False)


class ExportFormatSerializer(serializers.Serializer):
	format = serializers.ChoiceField(
		choices=list(EXPORT_FORMATS),
		error_messages={
			'required': 'Invalid or missing format parameter (csv, pdf, xlsx).',
			'invalid_choice': 'Invalid or missing format parameter (csv, pdf, xlsx).',
		},
	)


# Output

class StudentProfileSerializer(serializers.ModelSerializer):
	rollNo = serializers.CharField(source='roll_no')
	enrollmentNo = serializers.CharField(source='enrollment_no')

	class Meta:
		model = StudentProfile
		fields = ['rollNo', 'enrollmentNo', 'branch', 'year', 'phone', 'course']


class UserSerializer(serializers.ModelSerializer):
	"""User merged with its role-specific profile"""
	createdAt = serializers.DateTimeField(source='created_at', read_only=True)
	studentDetails = serializers.SerializerMethodField()
	staffDetails = serializers.SerializerMethodField()

	class Meta:
		model = User
		fields = ['id', 'name', 'email', 'role', 'status', 'createdAt', 'studentDetails', 'staffDetails']

	def get_studentDetails(self, obj):
		profile = getattr(obj, 'student_profile', None) if obj.role == User.ROLE_STUDENT else None
		return StudentProfileSerializer(profile).data if profile else None

	def get_staffDetails(self, obj):
		profile = getattr(obj, 'staff_profile', None) if obj.role == User.ROLE_STAFF else None
		if not profile:
			return None
		return {'employeeId': profile.employee_id, 'position': profile.position, 'phone': profile.phone}


class StudentProfileDetailSerializer(StudentProfileSerializer):
	id = serializers.IntegerField(source='user.id')
	name = serializers.CharField(source='user.name')
	email = serializers.EmailField(source='user.email')
	status = serializers.CharField(source='user.status')

	class Meta(StudentProfileSerializer.Meta):
		fields = ['id', 'name', 'email', 'status'] + StudentProfileSerializer.Meta.fields


class MessPlanSerializer(serializers.ModelSerializer):
	studentId = serializers.IntegerField(source='student_id', read_only=True)
	startDate = serializers.DateField(source='start_date')
	endDate = serializers.DateField(source='end_date')
	rejectionReason = serializers.CharField(source='rejection_reason', allow_null=True)
	createdAt = serializers.DateTimeField(source='created_at')
	updatedAt = serializers.DateTimeField(source='updated_at')

	class Meta:
		model = MessPlan
		fields = ['id', 'studentId', 'startDate', 'endDate', 'status', 'rejectionReason', 'createdAt', 'updatedAt']


class AdminMessPlanSerializer(MessPlanSerializer):
	studentName = serializers.CharField(source='student.name')
	enrollmentNumber = serializers.SerializerMethodField()

	class Meta(MessPlanSerializer.Meta):
		fields = MessPlanSerializer.Meta.fields + ['studentName', 'enrollmentNumber']

	def get_enrollmentNumber(self, obj):
		profile = getattr(obj.student, 'student_profile', None)
		return profile.enrollment_no if profile else None


class NotificationSerializer(serializers.ModelSerializer):
	isRead = serializers.BooleanField(source='is_read')
	createdAt = serializers.DateTimeField(source='created_at')

	class Meta:
		model = Notification
		fields = ['id', 'type', 'message', 'isRead', 'createdAt']


class StudentAttendanceSerializer(serializers.Serializer):
	id = serializers.IntegerField()
	date = serializers.DateField()
	mealType = serializers.CharField(source='meal_type')
	markedAt = serializers.DateTimeField(source='marked_at')
	isManualEntry = serializers.BooleanField(source='is_manual_entry')
