from django.test import SimpleTestCase, TestCase, override_settings
from rest_framework.test import APIClient
from rest_framework import status

from apps.accounts.models import User, ButcherAdmin, ButcherRole
from apps.accounts.policies import AdminPolicy, get_admin_policy
from apps.accounts.services import RoleService
from apps.gyms.models import Gym, GymAdmin


class AdminPolicyTests(SimpleTestCase):

    def test_case_insensitive_match(self):
        policy = AdminPolicy([" Root@Example.com ", ""])
        self.assertTrue(policy.is_site_admin("root@example.com"))
        self.assertTrue(policy.is_site_admin("ROOT@EXAMPLE.COM"))
        self.assertFalse(policy.is_site_admin("someone@example.com"))
        self.assertFalse(policy.is_site_admin(None))
        self.assertEqual(len(policy), 1)

    @override_settings(ADMIN_EMAILS=["boss@example.com"])
    def test_built_from_settings(self):
        get_admin_policy.cache_clear()
        self.addCleanup(get_admin_policy.cache_clear)
        self.assertTrue(get_admin_policy().is_site_admin("boss@example.com"))


class RoleServiceTests(TestCase):

    def setUp(self):
        self.user = User.objects.create_user(email="staff@example.com", password="testpass123")

    def test_plain_user_has_no_roles(self):
        roles = RoleService.get_roles(self.user)
        self.assertEqual(roles.as_dict(), {
            "is_site_admin": False,
            "is_gym_admin": False,
            "gym_ids": [],
            "is_butcher": False,
            "is_butcher_settler": False,
        })

    def test_gym_and_butcher_roles(self):
        gym = Gym.objects.create(name="Iron Temple")
        GymAdmin.objects.create(gym=gym, user=self.user)
        ButcherAdmin.objects.create(user=self.user, role=ButcherRole.SETTLEMENT)

        roles = RoleService.get_roles(self.user)

        self.assertTrue(roles.is_gym_admin)
        self.assertEqual(roles.gym_ids, [gym.id])
        self.assertTrue(roles.is_butcher)
        self.assertTrue(roles.is_butcher_settler)

    def test_prep_only_is_not_settler(self):
        ButcherAdmin.objects.create(user=self.user, role=ButcherRole.PREP_ONLY)
        self.assertTrue(RoleService.is_butcher(self.user))
        self.assertFalse(RoleService.is_butcher_settler(self.user))


class AccountsAPITests(TestCase):

    def setUp(self):
        get_admin_policy.cache_clear()
        self.addCleanup(get_admin_policy.cache_clear)
        self.client = APIClient()
        # ADMIN_EMAILS in test settings
        self.admin = User.objects.create_user(email="root@example.com", password="testpass123")
        self.user = User.objects.create_user(email="staff@example.com", password="testpass123", full_name="Sam")

    def test_token_obtain(self):
        response = self.client.post(
            "/api/v1/accounts/token/",
            {"email": "staff@example.com", "password": "testpass123"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn("access", response.data)

    def test_me_reports_roles(self):
        self.client.force_authenticate(self.admin)
        response = self.client.get("/api/v1/accounts/me/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data["ok"])
        self.assertEqual(response.data["user"]["email"], "root@example.com")
        self.assertTrue(response.data["user"]["roles"]["is_site_admin"])

    def test_me_requires_auth(self):
        response = self.client.get("/api/v1/accounts/me/")
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_site_admin_grants_and_revokes_butcher(self):
        self.client.force_authenticate(self.admin)

        response = self.client.post(
            "/api/v1/accounts/butcher-admins/",
            {"email": "STAFF@example.com", "role": "SETTLEMENT"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["admin"]["role"], "SETTLEMENT")
        self.assertEqual(response.data["admin"]["user_email"], "staff@example.com")

        response = self.client.get("/api/v1/accounts/butcher-admins/")
        self.assertEqual(len(response.data["items"]), 1)

        admin_id = response.data["items"][0]["id"]
        response = self.client.delete(f"/api/v1/accounts/butcher-admins/{admin_id}/")
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(ButcherAdmin.objects.exists())

    def test_grant_unknown_email(self):
        self.client.force_authenticate(self.admin)
        response = self.client.post(
            "/api/v1/accounts/butcher-admins/", {"email": "ghost@example.com"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_non_admin_forbidden(self):
        self.client.force_authenticate(self.user)
        response = self.client.get("/api/v1/accounts/butcher-admins/")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data["code"], "permission_denied")
