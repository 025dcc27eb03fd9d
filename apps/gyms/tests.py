from django.test import TestCase
from rest_framework.exceptions import NotFound
from rest_framework.test import APIClient
from rest_framework import status

from apps.accounts.models import User
from apps.accounts.policies import get_admin_policy
from apps.accounts.services import RoleService
from apps.gyms.models import Gym, GymAdmin
from apps.gyms.services import GymAdminService


class GymAdminServiceTests(TestCase):

    def setUp(self):
        self.gym = Gym.objects.create(name="Iron Temple")
        self.user = User.objects.create_user(email="desk@example.com", password="testpass123")

    def test_grant_is_idempotent(self):
        first = GymAdminService.grant(self.gym.id, "DESK@example.com")
        second = GymAdminService.grant(self.gym.id, "desk@example.com")

        self.assertEqual(first.id, second.id)
        self.assertEqual(GymAdmin.objects.count(), 1)
        self.assertEqual(RoleService.get_admin_gym_ids(self.user), [self.gym.id])

    def test_grant_unknown_gym(self):
        other = Gym(name="Nowhere")
        with self.assertRaises(NotFound):
            GymAdminService.grant(other.id, "desk@example.com")

    def test_revoke_is_scoped_to_gym(self):
        other_gym = Gym.objects.create(name="Muscle Barn")
        admin = GymAdmin.objects.create(gym=self.gym, user=self.user)

        with self.assertRaises(NotFound):
            GymAdminService.revoke(other_gym.id, admin.id)
        self.assertTrue(GymAdmin.objects.filter(id=admin.id).exists())

        GymAdminService.revoke(self.gym.id, admin.id)
        self.assertEqual(RoleService.get_admin_gym_ids(self.user), [])


class GymAdminAPITests(TestCase):

    def setUp(self):
        get_admin_policy.cache_clear()
        self.addCleanup(get_admin_policy.cache_clear)
        self.client = APIClient()
        # ADMIN_EMAILS in test settings
        self.admin = User.objects.create_user(email="root@example.com", password="testpass123")
        self.user = User.objects.create_user(email="desk@example.com", password="testpass123", full_name="Robin")
        self.gym = Gym.objects.create(name="Iron Temple")
        self.url = f"/api/v1/gyms/{self.gym.id}/admins/"

    def test_site_admin_grants_lists_and_revokes(self):
        self.client.force_authenticate(self.admin)

        response = self.client.post(self.url, {"email": "desk@example.com"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["admin"]["user_email"], "desk@example.com")
        self.assertEqual(response.data["admin"]["gym_id"], str(self.gym.id))

        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row["user_name"] for row in response.data["items"]], ["Robin"])

        admin_id = response.data["items"][0]["id"]
        response = self.client.delete(f"{self.url}{admin_id}/")
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(GymAdmin.objects.exists())

    def test_granted_user_gains_gym_scope(self):
        self.client.force_authenticate(self.admin)
        self.client.post(self.url, {"email": "desk@example.com"}, format="json")

        self.client.force_authenticate(self.user)
        response = self.client.get("/api/v1/accounts/me/")
        self.assertTrue(response.data["user"]["roles"]["is_gym_admin"])
        self.assertEqual(response.data["user"]["roles"]["gym_ids"], [str(self.gym.id)])

    def test_grant_unknown_email(self):
        self.client.force_authenticate(self.admin)
        response = self.client.post(self.url, {"email": "ghost@example.com"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_revoke_unknown_admin(self):
        self.client.force_authenticate(self.admin)
        response = self.client.delete(f"{self.url}{self.gym.id}/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_gym_list_for_site_admin(self):
        self.client.force_authenticate(self.admin)
        response = self.client.get("/api/v1/gyms/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["results"][0]["name"], "Iron Temple")

    def test_non_admin_forbidden(self):
        self.client.force_authenticate(self.user)
        response = self.client.post(self.url, {"email": "desk@example.com"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(GymAdmin.objects.exists())
