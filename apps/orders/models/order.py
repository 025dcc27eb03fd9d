from django.db import models
from django.conf import settings
from apps.utils.models import TimestampedModel


class OrderState(models.TextChoices):
    PENDING = "PENDING", "Pending"
    PREPARING = "PREPARING", "Preparing"
    READY_FOR_DELIVERY = "READY_FOR_DELIVERY", "Ready for delivery"
    IN_TRANSIT = "IN_TRANSIT", "In transit"
    AT_GYM = "AT_GYM", "At gym"
    PICKED_UP = "PICKED_UP", "Picked up"
    CANCELLED = "CANCELLED", "Cancelled"


class Order(TimestampedModel):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='orders')
    short_code = models.CharField(max_length=12, unique=True, db_index=True)
    state = models.CharField(max_length=20, choices=OrderState.choices, default=OrderState.PENDING, db_index=True)

    # Minor currency units, frozen at checkout
    subtotal_cents = models.PositiveIntegerField(default=0)
    total_cents = models.PositiveIntegerField(default=0)

    pickup_gym = models.ForeignKey(
        'gyms.Gym', null=True, blank=True, on_delete=models.SET_NULL, related_name='orders'
    )
    # Snapshot so history survives gym renames/deletes
    pickup_gym_name = models.CharField(max_length=120, blank=True, null=True)
    pickup_when = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True)

    arrived_at = models.DateTimeField(null=True, blank=True)
    picked_up_at = models.DateTimeField(null=True, blank=True)

    # Bumped on every state write; compare-and-swap guard
    version = models.PositiveIntegerField(default=0)

    gym_settlement = models.ForeignKey(
        'settlements.GymSettlement', null=True, blank=True,
        on_delete=models.PROTECT, related_name='orders'
    )
    butcher_settlement = models.ForeignKey(
        'settlements.ButcherSettlement', null=True, blank=True,
        on_delete=models.PROTECT, related_name='orders'
    )

    class Meta:
        db_table = "orders"
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["state", "pickup_gym"], name="orders_state_gym_idx"),
            models.Index(fields=["state", "gym_settlement", "butcher_settlement"], name="orders_settlement_idx"),
        ]

    def __str__(self):
        return f"#{self.short_code} [{self.state}]"
