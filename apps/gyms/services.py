import logging

from django.contrib.auth import get_user_model
from rest_framework.exceptions import NotFound

from .models import Gym, GymAdmin

logger = logging.getLogger(__name__)
User = get_user_model()


class GymAdminService:
    """
    Site-admin management of receiving staff per gym.
    """

    @staticmethod
    def get_gym(gym_id) -> Gym:
        try:
            return Gym.objects.get(id=gym_id)
        except Gym.DoesNotExist:
            raise NotFound("Gym not found.")

    @staticmethod
    def grant(gym_id, email: str) -> GymAdmin:
        gym = GymAdminService.get_gym(gym_id)
        user = User.objects.filter(email__iexact=email).first()
        if not user:
            raise NotFound("User not found for that email.")

        admin, created = GymAdmin.objects.get_or_create(gym=gym, user=user)
        if created:
            logger.info(f"Gym admin added: {user.email} @ {gym.name}",
                        extra={"gym_id": gym.id, "user_id": user.id})
        return admin

    @staticmethod
    def revoke(gym_id, admin_id) -> None:
        deleted, _ = GymAdmin.objects.filter(gym_id=gym_id, id=admin_id).delete()
        if not deleted:
            raise NotFound("Gym admin not found.")
        logger.info(f"Gym admin revoked: {admin_id}", extra={"gym_id": gym_id})
