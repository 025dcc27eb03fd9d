# apps/notifications/services.py
import logging
from string import Template

from django.db import transaction
from django.utils import timezone

logger = logging.getLogger(__name__)


ORDER_ARRIVED_SUBJECT = Template("Your order #${short_code} is ready for pickup")
ORDER_ARRIVED_BODY = Template(
    "Your order #${short_code} has arrived at ${gym_name}.\n"
    "Arrival time: ${arrived_at}\n\n"
    "Please show the code #${short_code} at the desk to collect your package.\n\n"
    "Thanks for ordering with Gym Meat!\n"
)


def render_order_arrived(order) -> tuple[str, str]:
    """
    Subject/body for the 'arrived at gym' email.
    """
    arrived_at = order.arrived_at or timezone.now()
    context = {
        "short_code": order.short_code,
        "gym_name": order.pickup_gym_name or "the gym",
        "arrived_at": timezone.localtime(arrived_at).strftime("%d.%m.%Y, %H:%M"),
    }
    return (
        ORDER_ARRIVED_SUBJECT.safe_substitute(**context),
        ORDER_ARRIVED_BODY.safe_substitute(**context),
    )


class NotificationService:

    @staticmethod
    def notify_order_arrived(order):
        """
        Queue the pickup email once the surrounding transaction commits.
        Best effort: a broker failure is logged, the state change stands.
        """
        order_id = str(order.id)

        def _enqueue():
            from .tasks import send_order_arrived_email
            try:
                send_order_arrived_email.delay(order_id)
            except Exception:
                logger.exception(f"Could not enqueue arrival email for order {order_id}")

        transaction.on_commit(_enqueue)
