import uuid
from django.db import models
from django.conf import settings
from apps.utils.models import TimestampedModel


class Gym(TimestampedModel):
    """
    Partner pickup location.
    """
    name = models.CharField(max_length=120)
    address = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "gyms"
        ordering = ["name"]

    def __str__(self):
        return self.name


class GymAdmin(models.Model):
    """
    Receiving staff scoped to one gym. A user may administer several gyms.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    gym = models.ForeignKey(Gym, on_delete=models.CASCADE, related_name='admins')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='gym_admins')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "gym_admins"
        unique_together = ('gym', 'user')

    def __str__(self):
        return f"{self.user} @ {self.gym}"
