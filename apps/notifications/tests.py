# apps/notifications/tests.py
from datetime import datetime, timezone as dt_timezone
from smtplib import SMTPException
from unittest.mock import patch
import uuid

from django.contrib.auth import get_user_model
from django.core import mail
from django.test import TestCase

from apps.orders.models import Order, OrderState
from .services import render_order_arrived
from .tasks import send_order_arrived_email


User = get_user_model()


class OrderArrivedEmailTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(email="kim@example.com", password="testpass")
        self.order = Order.objects.create(
            user=self.user,
            short_code="004217",
            state=OrderState.AT_GYM,
            pickup_gym_name="Iron Temple",
            arrived_at=datetime(2024, 3, 1, 17, 30, tzinfo=dt_timezone.utc),
        )

    def test_render_mentions_code_and_gym(self):
        subject, body = render_order_arrived(self.order)
        self.assertEqual(subject, "Your order #004217 is ready for pickup")
        self.assertIn("Iron Temple", body)
        self.assertIn("#004217", body)

    def test_render_without_gym_name(self):
        self.order.pickup_gym_name = None
        _, body = render_order_arrived(self.order)
        self.assertIn("the gym", body)

    def test_task_sends_one_mail(self):
        send_order_arrived_email(str(self.order.id))

        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ["kim@example.com"])
        self.assertEqual(mail.outbox[0].subject, "Your order #004217 is ready for pickup")

    def test_missing_order_is_skipped(self):
        send_order_arrived_email(str(uuid.uuid4()))
        self.assertEqual(len(mail.outbox), 0)

    @patch("apps.notifications.tasks.send_mail", side_effect=SMTPException("relay refused"))
    def test_smtp_failure_is_logged_not_raised(self, mock_send):
        with self.assertLogs("apps.notifications.tasks", level="ERROR"):
            send_order_arrived_email(str(self.order.id))
        mock_send.assert_called_once()
