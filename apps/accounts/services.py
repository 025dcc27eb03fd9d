import logging
from dataclasses import dataclass, field

from django.contrib.auth import get_user_model
from rest_framework.exceptions import NotFound

from .models import ButcherAdmin, ButcherRole
from .policies import get_admin_policy

logger = logging.getLogger(__name__)
User = get_user_model()


@dataclass(frozen=True)
class UserRoles:
    is_site_admin: bool = False
    is_gym_admin: bool = False
    gym_ids: list = field(default_factory=list)
    is_butcher: bool = False
    is_butcher_settler: bool = False

    def as_dict(self):
        return {
            "is_site_admin": self.is_site_admin,
            "is_gym_admin": self.is_gym_admin,
            "gym_ids": [str(g) for g in self.gym_ids],
            "is_butcher": self.is_butcher,
            "is_butcher_settler": self.is_butcher_settler,
        }


class RoleService:
    """
    Resolves what an authenticated user is allowed to do.
    """

    @staticmethod
    def get_butcher_admin(user):
        if not user or not user.is_authenticated:
            return None
        return ButcherAdmin.objects.filter(user=user).first()

    @staticmethod
    def is_butcher(user) -> bool:
        return RoleService.get_butcher_admin(user) is not None

    @staticmethod
    def is_butcher_settler(user) -> bool:
        admin = RoleService.get_butcher_admin(user)
        return admin is not None and admin.role == ButcherRole.SETTLEMENT

    @staticmethod
    def get_admin_gym_ids(user) -> list:
        if not user or not user.is_authenticated:
            return []
        return list(user.gym_admins.values_list("gym_id", flat=True))

    @staticmethod
    def get_roles(user) -> UserRoles:
        if not user or not user.is_authenticated:
            return UserRoles()

        gym_ids = RoleService.get_admin_gym_ids(user)
        butcher = RoleService.get_butcher_admin(user)
        return UserRoles(
            is_site_admin=get_admin_policy().is_site_admin(user.email),
            is_gym_admin=bool(gym_ids),
            gym_ids=gym_ids,
            is_butcher=butcher is not None,
            is_butcher_settler=butcher is not None and butcher.role == ButcherRole.SETTLEMENT,
        )


class ButcherAdminService:

    @staticmethod
    def grant(email: str, role: str = ButcherRole.PREP_ONLY) -> ButcherAdmin:
        user = User.objects.filter(email__iexact=email).first()
        if not user:
            raise NotFound("User not found for that email.")

        admin, created = ButcherAdmin.objects.update_or_create(
            user=user, defaults={"role": role}
        )
        logger.info(f"Butcher admin {'created' if created else 'updated'}: {user.email} ({role})")
        return admin

    @staticmethod
    def revoke(admin_id) -> None:
        deleted, _ = ButcherAdmin.objects.filter(id=admin_id).delete()
        if not deleted:
            raise NotFound("Butcher admin not found.")
        logger.info(f"Butcher admin revoked: {admin_id}")
