from django.db import models
from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin, BaseUserManager
from django.core.validators import RegexValidator
from django.utils import timezone

phone_validator = RegexValidator(regex=r'^\+?\d{10,15}$', message='Phone must be 10 to 15 digits')


class UserManager(BaseUserManager):
	use_in_migrations = True

	def create_user(self, email, password=None, **extra_fields):
		if not email:
			raise ValueError('Email is required')
		email = self.normalize_email(email)
		user = self.model(email=email, **extra_fields)
		user.set_password(password)
		user.save(using=self._db)
		return user

	def create_superuser(self, email, password=None, **extra_fields):
		extra_fields.setdefault('role', User.ROLE_ADMIN)
		extra_fields.setdefault('status', User.STATUS_APPROVED)
		extra_fields.setdefault('is_staff', True)
		extra_fields.setdefault('is_superuser', True)
		return self.create_user(email, password, **extra_fields)


class User(AbstractBaseUser, PermissionsMixin):
	ROLE_STUDENT = 'student'
	ROLE_STAFF = 'staff'
	ROLE_ADMIN = 'admin'
	ROLE_CHOICES = [
		(ROLE_STUDENT, 'Student'),
		(ROLE_STAFF, 'Staff'),
		(ROLE_ADMIN, 'Admin'),
	]

	STATUS_PENDING = 'pending'
	STATUS_APPROVED = 'approved'
	STATUS_SUSPENDED = 'suspended'
	STATUS_CHOICES = [
		(STATUS_PENDING, 'Pending'),
		(STATUS_APPROVED, 'Approved'),
		(STATUS_SUSPENDED, 'Suspended'),
	]

	name = models.CharField(max_length=100)
	email = models.EmailField(unique=True)
	role = models.CharField(max_length=10, choices=ROLE_CHOICES, default=ROLE_STUDENT)
	status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING)
	is_staff = models.BooleanField(default=False)
	created_at = models.DateTimeField(auto_now_add=True)
	updated_at = models.DateTimeField(auto_now=True)

	objects = UserManager()

	USERNAME_FIELD = 'email'
	REQUIRED_FIELDS = ['name']

	def __str__(self):
		return f"{self.name} <{self.email}>"

	@property
	def is_approved(self):
		return self.status == self.STATUS_APPROVED

	class Meta:
		db_table = 'users'


class StudentProfile(models.Model):
	user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='student_profile')
	roll_no = models.CharField(max_length=20, unique=True)
	enrollment_no = models.CharField(max_length=30, unique=True)
	branch = models.CharField(max_length=100)
	year = models.CharField(max_length=10)
	phone = models.CharField(max_length=15, validators=[phone_validator])
	course = models.CharField(max_length=100, blank=True, null=True)

	def __str__(self):
		return f"{self.user.name} ({self.roll_no})"

	class Meta:
		db_table = 'students'


class StaffProfile(models.Model):
	user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='staff_profile')
	employee_id = models.CharField(max_length=30, unique=True)
	position = models.CharField(max_length=100)
	phone = models.CharField(max_length=15, blank=True, null=True, validators=[phone_validator])

	def __str__(self):
		return f"{self.user.name} ({self.employee_id})"

	class Meta:
		db_table = 'staff'


class MessPlan(models.Model):
	STATUS_PENDING = 'pending'
	STATUS_APPROVED = 'approved'
	STATUS_REJECTED = 'rejected'
	STATUS_CHOICES = [
		(STATUS_PENDING, 'Pending'),
		(STATUS_APPROVED, 'Approved'),
		(STATUS_REJECTED, 'Rejected'),
	]

	student = models.ForeignKey(User, on_delete=models.CASCADE, related_name='mess_plans')
	start_date = models.DateField()
	end_date = models.DateField()
	status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING)
	rejection_reason = models.TextField(blank=True, null=True)
	created_at = models.DateTimeField(auto_now_add=True)
	updated_at = models.DateTimeField(auto_now=True)

	def __str__(self):
		return f"{self.student.name} - {self.start_date} to {self.end_date} ({self.status})"

	def covers(self, day):
		return self.start_date <= day <= self.end_date

	class Meta:
		db_table = 'mess_plans'
		ordering = ['-created_at', '-id']


class Attendance(models.Model):
	MEAL_BREAKFAST = 'breakfast'
	MEAL_LUNCH = 'lunch'
	MEAL_DINNER = 'dinner'
	MEAL_CHOICES = [
		(MEAL_BREAKFAST, 'Breakfast'),
		(MEAL_LUNCH, 'Lunch'),
		(MEAL_DINNER, 'Dinner'),
	]

	user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='attendance')
	date = models.DateField()
	meal_type = models.CharField(max_length=10, choices=MEAL_CHOICES)
	marked_at = models.DateTimeField(default=timezone.now)
	marked_by = models.ForeignKey(
		User, on_delete=models.SET_NULL, null=True, blank=True, related_name='marked_attendance'
	)
	ip_address = models.GenericIPAddressField(null=True, blank=True)
	device_info = models.TextField(blank=True, null=True)
	is_manual_entry = models.BooleanField(default=False)
	notes = models.TextField(blank=True, null=True)

	def __str__(self):
		return f"{self.user.name} - {self.meal_type} - {self.date}"

	class Meta:
		db_table = 'attendance'
		constraints = [
			models.UniqueConstraint(fields=['user', 'date', 'meal_type'], name='unique_meal_per_day'),
		]
		indexes = [
			models.Index(fields=['date', 'meal_type'], name='attendance_date_meal_idx'),
		]


class Notification(models.Model):
	TYPE_ACCOUNT = 'account'
	TYPE_MESS_PLAN = 'mess_plan'
	TYPE_ATTENDANCE = 'attendance'
	TYPE_CHOICES = [
		(TYPE_ACCOUNT, 'Account'),
		(TYPE_MESS_PLAN, 'Mess Plan'),
		(TYPE_ATTENDANCE, 'Attendance'),
	]

	user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='notifications')
	type = models.CharField(max_length=20, choices=TYPE_CHOICES)
	message = models.TextField()
	is_read = models.BooleanField(default=False)
	created_at = models.DateTimeField(auto_now_add=True)

	def __str__(self):
		return f"{self.user.name} - {self.type}"

	class Meta:
		db_table = 'notifications'
		ordering = ['-created_at', '-id']


class ActivityLog(models.Model):
	type = models.CharField(max_length=50)
	description = models.TextField()
	entity_id = models.CharField(max_length=50, null=True, blank=True)
	entity_type = models.CharField(max_length=50, null=True, blank=True)
	created_at = models.DateTimeField(auto_now_add=True)

	def __str__(self):
		return f"{self.type} - {self.created_at}"

	class Meta:
		db_table = 'activities'
		ordering = ['-created_at']
