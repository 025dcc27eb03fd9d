from django.db import models
from apps.utils.models import TimestampedModel
from .order import Order


class LineState(models.TextChoices):
    PENDING = "PENDING", "Pending"
    PREPARING = "PREPARING", "Preparing"
    READY = "READY", "Ready"
    SENT = "SENT", "Sent"


class OrderLine(TimestampedModel):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='lines')

    # Catalog lives elsewhere; the line must outlive product deletion
    product_id = models.UUIDField(null=True, blank=True)

    # Snapshot fields (Critical for audit)
    product_name = models.CharField(max_length=255)
    species = models.CharField(max_length=40, default="OTHER")
    part = models.CharField(max_length=60, blank=True, null=True)
    unit_label = models.CharField(max_length=40, blank=True, null=True)
    variant_size_grams = models.PositiveIntegerField(null=True, blank=True)
    base_price_cents = models.PositiveIntegerField()
    # [{"option_id": ..., "label": ..., "price_delta_cents": ...}]
    options = models.JSONField(default=list, blank=True)

    quantity = models.PositiveIntegerField(default=1)

    state = models.CharField(max_length=20, choices=LineState.choices, default=LineState.PENDING, db_index=True)
    version = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "order_lines"
        ordering = ["created_at", "id"]

    def __str__(self):
        return f"{self.quantity}x {self.product_name} [{self.state}]"

    @property
    def unit_cents(self) -> int:
        return self.base_price_cents + sum(
            int(o.get("price_delta_cents") or 0) for o in self.options or []
        )

    @property
    def total_cents(self) -> int:
        return self.unit_cents * self.quantity

    @property
    def prep_labels(self) -> list:
        return [
            o["label"] for o in self.options or []
            if isinstance(o, dict) and isinstance(o.get("label"), str) and o["label"]
        ]
