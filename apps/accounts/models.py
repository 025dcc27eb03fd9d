import uuid
from django.db import models
from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.utils import timezone
from .managers import UserManager


class User(AbstractBaseUser, PermissionsMixin):
    """
    Core Identity Model.
    Email is the primary identifier. Staff roles hang off it:
    ButcherAdmin (one per user) and GymAdmin (one per administered gym).
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True, db_index=True)
    full_name = models.CharField(max_length=255, blank=True)

    is_staff = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    date_joined = models.DateTimeField(default=timezone.now)

    objects = UserManager()

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = []

    class Meta:
        verbose_name = 'User'
        verbose_name_plural = 'Users'

    def __str__(self):
        return self.email


class ButcherRole(models.TextChoices):
    PREP_ONLY = "PREP_ONLY", "Preparation only"
    SETTLEMENT = "SETTLEMENT", "Preparation & settlement"


class ButcherAdmin(models.Model):
    """
    Marks a user as butcher staff.
    SETTLEMENT role may additionally close butcher settlements.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='butcher_admin')
    role = models.CharField(max_length=20, choices=ButcherRole.choices, default=ButcherRole.PREP_ONLY)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "butcher_admins"

    def __str__(self):
        return f"{self.user.email} - {self.role}"
