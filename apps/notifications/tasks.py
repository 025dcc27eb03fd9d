import logging
from smtplib import SMTPException

from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail

from apps.orders.models import Order
from .services import render_order_arrived

logger = logging.getLogger(__name__)


# acks_late=False + no retries: the email goes out at most once
@shared_task(acks_late=False, ignore_result=True)
def send_order_arrived_email(order_id: str):
    try:
        order = Order.objects.select_related("user").get(id=order_id)
    except Order.DoesNotExist:
        logger.error(f"Order {order_id} not found, arrival email skipped.")
        return

    recipient = order.user.email
    if not recipient:
        logger.warning(f"Order {order_id} has no customer email, arrival email skipped.")
        return

    subject, body = render_order_arrived(order)
    try:
        send_mail(
            subject,
            body,
            settings.DEFAULT_FROM_EMAIL,
            [recipient],
            fail_silently=False,
        )
        logger.info(f"Arrival email sent for order #{order.short_code}", extra={"order_id": order_id})
    except (SMTPException, OSError):
        logger.exception(f"Failed to send arrival email for order {order_id}")
