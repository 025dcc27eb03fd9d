import uuid
from django.db import models
from django.conf import settings
from .order import Order
from .line import OrderLine


class OrderTimeline(models.Model):
    """
    Append-only log of accepted state changes, for orders and their lines.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(Order, related_name="timeline", on_delete=models.CASCADE)
    line = models.ForeignKey(
        OrderLine, related_name="timeline", null=True, blank=True, on_delete=models.CASCADE
    )

    from_state = models.CharField(max_length=20)
    to_state = models.CharField(max_length=20)
    timestamp = models.DateTimeField(auto_now_add=True)
    note = models.TextField(blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL
    )

    class Meta:
        db_table = "order_timeline"
        ordering = ["-timestamp"]

    def __str__(self):
        target = f"line {self.line_id}" if self.line_id else "order"
        return f"{self.order_id} {target}: {self.from_state} -> {self.to_state}"
