import uuid
from django.db import models
from django.conf import settings
from apps.utils.models import ImmutableModel


class Settlement(ImmutableModel):
    """
    Closed financial batch. Count and total are computed once, when the
    batch claims its orders, and never recomputed from live order rows.
    Members are the orders whose settlement FK points here.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='%(class)s_created'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    order_count = models.PositiveIntegerField()
    total_cents = models.PositiveBigIntegerField()
    notes = models.TextField(blank=True)

    class Meta:
        abstract = True
        ordering = ["-created_at"]


class GymSettlement(Settlement):
    gym = models.ForeignKey('gyms.Gym', on_delete=models.PROTECT, related_name='settlements')

    class Meta(Settlement.Meta):
        db_table = "gym_settlements"

    def __str__(self):
        return f"Gym settlement {self.id} ({self.order_count} orders, {self.total_cents})"


class ButcherSettlement(Settlement):

    class Meta(Settlement.Meta):
        db_table = "butcher_settlements"

    def __str__(self):
        return f"Butcher settlement {self.id} ({self.order_count} orders, {self.total_cents})"
