from rest_framework.permissions import BasePermission
from .policies import get_admin_policy
from .services import RoleService


class IsSiteAdmin(BasePermission):
    message = "Site administrators only."

    def has_permission(self, request, view):
        return (
            request.user.is_authenticated and
            get_admin_policy().is_site_admin(request.user.email)
        )


class IsButcher(BasePermission):
    message = "Butcher staff only."

    def has_permission(self, request, view):
        return (
            request.user.is_authenticated and
            RoleService.is_butcher(request.user)
        )


class IsButcherSettler(BasePermission):
    message = "Butcher settlement role required."

    def has_permission(self, request, view):
        return (
            request.user.is_authenticated and
            RoleService.is_butcher_settler(request.user)
        )


class IsGymAdmin(BasePermission):
    """
    Any gym scope at all. Per-gym checks happen in the services,
    which receive the actor's gym ids.
    """
    message = "Gym administrators only."

    def has_permission(self, request, view):
        return (
            request.user.is_authenticated and
            bool(RoleService.get_admin_gym_ids(request.user))
        )
