# apps/settlements/tests.py
import itertools
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from rest_framework import status
from rest_framework.exceptions import PermissionDenied, ValidationError
from rest_framework.test import APITestCase

from apps.accounts.models import ButcherAdmin, ButcherRole
from apps.gyms.models import Gym, GymAdmin
from apps.orders.models import Order, OrderState
from apps.utils.exceptions import ImmutableRecordError, SettlementConflict
from .models import GymSettlement, ButcherSettlement
from .services import GymSettlementBatcher, ButcherSettlementBatcher

User = get_user_model()
_codes = itertools.count(500000)


def picked_up_order(user, gym, total_cents, state=OrderState.PICKED_UP, **extra):
    return Order.objects.create(
        user=user,
        short_code=str(next(_codes)),
        state=state,
        pickup_gym=gym,
        pickup_gym_name=gym.name,
        subtotal_cents=total_cents,
        total_cents=total_cents,
        **extra,
    )


class GymSettlementBatcherTests(TestCase):
    def setUp(self):
        self.customer = User.objects.create_user(email="cust@example.com", password="pass12345")
        self.staff = User.objects.create_user(email="desk@example.com", password="pass12345")
        self.gym = Gym.objects.create(name="Iron Temple")
        self.other_gym = Gym.objects.create(name="Muscle Barn")
        GymAdmin.objects.create(gym=self.gym, user=self.staff)

        self.first = picked_up_order(self.customer, self.gym, 1000)
        self.second = picked_up_order(self.customer, self.gym, 2500)
        self.waiting = picked_up_order(self.customer, self.gym, 700, state=OrderState.AT_GYM)
        self.elsewhere = picked_up_order(self.customer, self.other_gym, 900)

    def test_settle_freezes_totals_and_stamps_orders(self):
        result = GymSettlementBatcher().settle_for(self.staff, notes="week 42")

        self.assertTrue(result["ok"])
        self.assertEqual(result["count"], 2)
        self.assertEqual(result["total_cents"], 3500)

        settlement = GymSettlement.objects.get(id=result["settlement_id"])
        self.assertEqual(settlement.gym, self.gym)
        self.assertEqual(settlement.order_count, 2)
        self.assertEqual(settlement.total_cents, 3500)
        self.assertEqual(settlement.notes, "week 42")
        self.assertEqual(
            set(settlement.orders.values_list("id", flat=True)), {self.first.id, self.second.id}
        )
        self.waiting.refresh_from_db()
        self.elsewhere.refresh_from_db()
        self.assertIsNone(self.waiting.gym_settlement_id)
        self.assertIsNone(self.elsewhere.gym_settlement_id)

    def test_total_unaffected_by_later_order_edits(self):
        result = GymSettlementBatcher().settle_for(self.staff)
        Order.objects.filter(id=self.first.id).update(total_cents=99999)

        settlement = GymSettlement.objects.get(id=result["settlement_id"])
        self.assertEqual(settlement.total_cents, 3500)

    def test_settled_orders_excluded_from_next_batch(self):
        GymSettlementBatcher().settle_for(self.staff)
        result = GymSettlementBatcher().settle_for(self.staff)

        self.assertEqual(result, {"ok": True, "settlement_id": None, "count": 0, "total_cents": 0})
        self.assertEqual(GymSettlement.objects.count(), 1)

    def test_dry_run_creates_nothing(self):
        result = GymSettlementBatcher().settle_for(self.staff, dry_run=True)

        self.assertTrue(result["dry_run"])
        self.assertEqual(result["eligible_count"], 2)
        self.assertEqual(result["total_cents"], 3500)
        self.assertEqual([row["short_code"] for row in result["sample"]],
                         [self.first.short_code, self.second.short_code])
        self.assertEqual(GymSettlement.objects.count(), 0)
        self.assertFalse(Order.objects.filter(gym_settlement__isnull=False).exists())

    @override_settings(SETTLEMENT_PREVIEW_SAMPLE_SIZE=1)
    def test_dry_run_sample_is_capped(self):
        result = GymSettlementBatcher().settle_for(self.staff, dry_run=True)
        self.assertEqual(result["eligible_count"], 2)
        self.assertEqual(len(result["sample"]), 1)

    def test_stale_selection_rolls_back(self):
        """
        A concurrent batch claimed `first` between our read and our update.
        """
        rival = GymSettlement.objects.create(
            gym=self.gym, created_by=self.staff, order_count=1, total_cents=1000
        )
        Order.objects.filter(id=self.first.id).update(gym_settlement=rival)
        stale = [(self.first.id, 1000), (self.second.id, 2500)]

        with patch.object(GymSettlementBatcher, "_select_eligible", return_value=stale):
            with self.assertRaises(SettlementConflict):
                GymSettlementBatcher().settle_for(self.staff)

        self.assertEqual(GymSettlement.objects.count(), 1)
        self.first.refresh_from_db()
        self.second.refresh_from_db()
        self.assertEqual(self.first.gym_settlement_id, rival.id)
        self.assertIsNone(self.second.gym_settlement_id)

    def test_explicit_foreign_gym_forbidden(self):
        with self.assertRaises(PermissionDenied):
            GymSettlementBatcher().settle_for(self.staff, gym_id=self.other_gym.id)

    def test_gym_inferred_from_unsettled_orders(self):
        GymAdmin.objects.create(gym=self.other_gym, user=self.staff)
        Order.objects.filter(pickup_gym=self.gym).delete()

        result = GymSettlementBatcher().settle_for(self.staff)

        settlement = GymSettlement.objects.get(id=result["settlement_id"])
        self.assertEqual(settlement.gym, self.other_gym)
        self.assertEqual(result["count"], 1)

    def test_ambiguous_gym_rejected(self):
        GymAdmin.objects.create(gym=self.other_gym, user=self.staff)
        with self.assertRaises(ValidationError):
            GymSettlementBatcher().settle_for(self.staff)


class ButcherSettlementBatcherTests(TestCase):
    def setUp(self):
        self.customer = User.objects.create_user(email="cust@example.com", password="pass12345")
        self.staff = User.objects.create_user(email="desk@example.com", password="pass12345")
        self.butcher = User.objects.create_user(email="butcher@example.com", password="pass12345")
        self.gym = Gym.objects.create(name="Iron Temple")
        self.gym_settlement = GymSettlement.objects.create(
            gym=self.gym, created_by=self.staff, order_count=1, total_cents=1200
        )
        self.closed = picked_up_order(self.customer, self.gym, 1200, gym_settlement=self.gym_settlement)
        self.open = picked_up_order(self.customer, self.gym, 800)

    def test_only_gym_settled_orders_are_eligible(self):
        result = ButcherSettlementBatcher().settle(self.butcher)

        self.assertEqual(result["count"], 1)
        self.assertEqual(result["total_cents"], 1200)
        self.closed.refresh_from_db()
        self.open.refresh_from_db()
        self.assertEqual(str(self.closed.butcher_settlement_id), result["settlement_id"])
        self.assertIsNone(self.open.butcher_settlement_id)

    def test_nothing_to_settle(self):
        ButcherSettlementBatcher().settle(self.butcher)
        result = ButcherSettlementBatcher().settle(self.butcher)
        self.assertIsNone(result["settlement_id"])
        self.assertEqual(ButcherSettlement.objects.count(), 1)


class ImmutabilityTests(TestCase):
    def setUp(self):
        self.staff = User.objects.create_user(email="desk@example.com", password="pass12345")
        self.settlement = ButcherSettlement.objects.create(
            created_by=self.staff, order_count=0, total_cents=0
        )

    def test_update_refused(self):
        self.settlement.total_cents = 10
        with self.assertRaises(ImmutableRecordError):
            self.settlement.save()
        self.settlement.refresh_from_db()
        self.assertEqual(self.settlement.total_cents, 0)

    def test_delete_refused(self):
        with self.assertRaises(ImmutableRecordError):
            self.settlement.delete()
        self.assertTrue(ButcherSettlement.objects.filter(id=self.settlement.id).exists())


class SettlementAPITests(APITestCase):
    def setUp(self):
        self.customer = User.objects.create_user(email="cust@example.com", password="pass12345")
        self.staff = User.objects.create_user(email="desk@example.com", password="pass12345")
        self.prep = User.objects.create_user(email="prep@example.com", password="pass12345")
        self.settler = User.objects.create_user(email="money@example.com", password="pass12345")
        ButcherAdmin.objects.create(user=self.prep, role=ButcherRole.PREP_ONLY)
        ButcherAdmin.objects.create(user=self.settler, role=ButcherRole.SETTLEMENT)

        self.gym = Gym.objects.create(name="Iron Temple")
        GymAdmin.objects.create(gym=self.gym, user=self.staff)
        picked_up_order(self.customer, self.gym, 1500)

    def test_gym_settle_and_history(self):
        self.client.force_authenticate(self.staff)

        response = self.client.post("/api/v1/gym/settlements/", {"notes": "Friday"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["count"], 1)
        self.assertEqual(response.data["total_cents"], 1500)

        response = self.client.get("/api/v1/gym/settlements/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        rows = response.data["results"]
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["gym_name"], "Iron Temple")
        self.assertEqual(len(rows[0]["orders"]), 1)

    def test_gym_history_filtered_by_gym(self):
        second_gym = Gym.objects.create(name="Muscle Barn")
        GymAdmin.objects.create(gym=second_gym, user=self.staff)
        GymSettlement.objects.create(gym=self.gym, created_by=self.staff, order_count=0, total_cents=0)
        GymSettlement.objects.create(gym=second_gym, created_by=self.staff, order_count=0, total_cents=0)
        self.client.force_authenticate(self.staff)

        response = self.client.get("/api/v1/gym/settlements/", {"gym_id": str(second_gym.id)})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["count"], 1)
        self.assertEqual(response.data["results"][0]["gym_name"], "Muscle Barn")

    def test_gym_history_rejects_malformed_gym_id(self):
        self.client.force_authenticate(self.staff)
        response = self.client.get("/api/v1/gym/settlements/", {"gym_id": "not-a-uuid"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("gym_id", response.data)

    def test_gym_dry_run(self):
        self.client.force_authenticate(self.staff)
        response = self.client.post("/api/v1/gym/settlements/", {"dry_run": True}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["eligible_count"], 1)
        self.assertEqual(GymSettlement.objects.count(), 0)

    def test_gym_settle_requires_gym_admin(self):
        self.client.force_authenticate(self.customer)
        response = self.client.post("/api/v1/gym/settlements/", {}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_prep_only_butcher_cannot_settle(self):
        self.client.force_authenticate(self.prep)

        response = self.client.post("/api/v1/butcher/settlements/", {}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        response = self.client.get("/api/v1/butcher/settlements/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_settler_nothing_to_settle(self):
        self.client.force_authenticate(self.settler)
        response = self.client.post("/api/v1/butcher/settlements/", {"notes": ""}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["count"], 0)
        self.assertIsNone(response.data["settlement_id"])
