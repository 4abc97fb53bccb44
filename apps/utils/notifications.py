from celery import shared_task
from django.db import DatabaseError
from apps.core.models import User, MessPlan, Notification
import logging

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3)
def create_notification(self, user_id, notification_type, message):
    """Store an in-app notification with retry logic"""
    try:
        notification = Notification.objects.create(
            user_id=user_id,
            type=notification_type,
            message=message
        )
        logger.info(f"Notification {notification.id} created for user {user_id}")
        return notification.id

    except DatabaseError as exc:
        logger.error(f"Failed to create notification for user {user_id}: {exc}")

        if self.request.retries < self.max_retries:
            raise self.retry(exc=exc, countdown=60 * (2 ** self.request.retries))
        raise


@shared_task
def send_account_status_notification(user_id, status):
    """Tell a user their account was approved or suspended"""
    text = {
        User.STATUS_APPROVED: (
            "Your account has been approved. You can now log in, request a "
            "mess plan and generate meal QR codes."
        ),
        User.STATUS_SUSPENDED: (
            "Your account has been suspended. Please contact the mess admin "
            "if you believe this is an error."
        ),
        User.STATUS_PENDING: "Your account is pending admin approval.",
    }.get(status)

    if text is None:
        logger.warning(f"No account notification for status {status}")
        return

    create_notification.delay(user_id, Notification.TYPE_ACCOUNT, text)


@shared_task
def send_mess_plan_decision_notification(plan_id):
    """Notify the student when an admin approves or rejects a mess plan"""
    try:
        plan = MessPlan.objects.get(id=plan_id)
    except MessPlan.DoesNotExist:
        logger.error(f"MessPlan {plan_id} not found")
        return

    if plan.status == MessPlan.STATUS_APPROVED:
        text = (
            f"Your mess plan from {plan.start_date} to {plan.end_date} "
            f"has been approved."
        )
    elif plan.status == MessPlan.STATUS_REJECTED:
        text = (
            f"Your mess plan from {plan.start_date} to {plan.end_date} "
            f"has been rejected."
        )
        if plan.rejection_reason:
            text += f" Reason: {plan.rejection_reason}"
    else:
        return

    create_notification.delay(plan.student_id, Notification.TYPE_MESS_PLAN, text)


@shared_task
def send_attendance_marked_notification(user_id, meal_type, day):
    """Notify the student when a meal is marked against their account"""
    text = f"{meal_type.title()} attendance recorded for {day}. Enjoy your meal!"
    create_notification.delay(user_id, Notification.TYPE_ATTENDANCE, text)
