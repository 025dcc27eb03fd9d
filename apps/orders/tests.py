# apps/orders/tests.py
import itertools
import uuid
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.core import mail
from django.test import SimpleTestCase, TestCase
from rest_framework import status
from rest_framework.exceptions import NotFound
from rest_framework.test import APITestCase

from apps.accounts.models import ButcherAdmin, ButcherRole
from apps.gyms.models import Gym, GymAdmin
from apps.utils.exceptions import (
    BusinessLogicException,
    ConcurrentModification,
    InvalidTransition,
    NotSendable,
    OrderNotEditable,
)
from .models import Order, OrderLine, OrderTimeline, OrderState, LineState
from .readiness import annotate_sendable, derive_order_state, is_sendable
from .services import OrderService, LineService
from .state_machine import (
    BUTCHER_ORDER_MACHINE,
    GYM_ORDER_MACHINE,
    LINE_MACHINE,
    TERMINAL_ORDER_STATES,
    order_machine_for,
)

User = get_user_model()
_codes = itertools.count(100000)


def make_order(user, gym=None, state=OrderState.PENDING, line_states=(LineState.PENDING,), price=1000):
    order = Order.objects.create(
        user=user,
        short_code=str(next(_codes)),
        state=state,
        pickup_gym=gym,
        pickup_gym_name=gym.name if gym else None,
        subtotal_cents=price * len(line_states),
        total_cents=price * len(line_states),
    )
    for line_state in line_states:
        OrderLine.objects.create(
            order=order,
            product_name="Ribeye",
            species="BEEF",
            base_price_cents=price,
            state=line_state,
        )
    return order


class StateMachineTableTests(SimpleTestCase):
    """
    Every (state, requested) pair is checked against the expected table.
    """

    LINE_EXPECTED = {
        LineState.PENDING: {LineState.PREPARING},
        LineState.PREPARING: {LineState.READY, LineState.PENDING},
        LineState.READY: {LineState.PREPARING, LineState.SENT},
        LineState.SENT: {LineState.READY},
    }

    BUTCHER_EXPECTED = {
        OrderState.PENDING: {OrderState.PREPARING},
        OrderState.PREPARING: {OrderState.READY_FOR_DELIVERY, OrderState.CANCELLED},
        OrderState.READY_FOR_DELIVERY: {OrderState.IN_TRANSIT, OrderState.CANCELLED},
    }

    GYM_EXPECTED = {
        OrderState.IN_TRANSIT: {OrderState.AT_GYM},
        OrderState.AT_GYM: {OrderState.PICKED_UP, OrderState.CANCELLED},
    }

    def assert_table(self, machine, states, expected):
        for current, requested in itertools.product(states, states):
            allowed = requested in expected.get(current, set())
            with self.subTest(machine=machine.name, current=current, requested=requested):
                self.assertEqual(machine.can_transition(current, requested), allowed)
                if allowed:
                    machine.check(current, requested)
                else:
                    with self.assertRaises(InvalidTransition):
                        machine.check(current, requested)

    def test_line_table(self):
        self.assert_table(LINE_MACHINE, list(LineState), self.LINE_EXPECTED)

    def test_butcher_order_table(self):
        self.assert_table(BUTCHER_ORDER_MACHINE, list(OrderState), self.BUTCHER_EXPECTED)

    def test_gym_order_table(self):
        self.assert_table(GYM_ORDER_MACHINE, list(OrderState), self.GYM_EXPECTED)

    def test_no_state_transitions_to_itself(self):
        for machine in (LINE_MACHINE, BUTCHER_ORDER_MACHINE, GYM_ORDER_MACHINE):
            for state in machine.states:
                self.assertNotIn(state, machine.allowed_next(state))

    def test_terminal_states(self):
        self.assertEqual(TERMINAL_ORDER_STATES, {OrderState.PICKED_UP, OrderState.CANCELLED})
        for state in TERMINAL_ORDER_STATES:
            self.assertEqual(BUTCHER_ORDER_MACHINE.allowed_next(state), frozenset())
            self.assertEqual(GYM_ORDER_MACHINE.allowed_next(state), frozenset())

    def test_rejection_payload(self):
        with self.assertRaises(InvalidTransition) as ctx:
            BUTCHER_ORDER_MACHINE.check(OrderState.PREPARING, OrderState.IN_TRANSIT)

        exc = ctx.exception
        self.assertEqual(exc.code, "invalid_transition")
        self.assertEqual(exc.extra["current_state"], "PREPARING")
        self.assertEqual(exc.extra["requested_state"], "IN_TRANSIT")
        self.assertEqual(exc.extra["allowed_next"], ["CANCELLED", "READY_FOR_DELIVERY"])

    def test_unknown_actor(self):
        with self.assertRaises(ValueError):
            order_machine_for("CUSTOMER")


class ReadinessTests(SimpleTestCase):

    def test_is_sendable(self):
        self.assertFalse(is_sendable([]))
        self.assertTrue(is_sendable(["READY", "READY"]))
        self.assertTrue(is_sendable(["READY", "SENT"]))
        self.assertFalse(is_sendable(["READY", "READY", "PREPARING"]))
        self.assertFalse(is_sendable(["PENDING"]))

    def test_derive_order_state(self):
        cases = [
            (["SENT", "SENT"], OrderState.READY_FOR_DELIVERY, OrderState.IN_TRANSIT),
            (["SENT", "READY"], OrderState.READY_FOR_DELIVERY, OrderState.READY_FOR_DELIVERY),
            (["READY", "READY"], OrderState.PREPARING, OrderState.READY_FOR_DELIVERY),
            (["PENDING", "PENDING"], OrderState.PENDING, OrderState.PENDING),
            (["PENDING", "PENDING"], OrderState.PREPARING, OrderState.PREPARING),
            (["PREPARING", "PENDING"], OrderState.PENDING, OrderState.PREPARING),
            (["READY", "PREPARING"], OrderState.READY_FOR_DELIVERY, OrderState.PREPARING),
            ([], OrderState.PENDING, OrderState.PENDING),
        ]
        for states, current, expected in cases:
            with self.subTest(states=states, current=current):
                self.assertEqual(derive_order_state(states, current), expected)


class SendableAnnotationTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(email="cust@example.com", password="pass12345")

    def test_annotation_matches_python_rule(self):
        ready = make_order(self.user, state=OrderState.PREPARING, line_states=[LineState.READY, LineState.READY])
        mixed = make_order(self.user, state=OrderState.PREPARING, line_states=[LineState.READY, LineState.PREPARING])
        empty = make_order(self.user, state=OrderState.PREPARING, line_states=[])

        flags = dict(annotate_sendable(Order.objects.all()).values_list("id", "sendable"))
        self.assertTrue(flags[ready.id])
        self.assertFalse(flags[mixed.id])
        self.assertFalse(flags[empty.id])


class CreateOrderTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(email="cust@example.com", password="pass12345")
        self.gym = Gym.objects.create(name="Iron Temple")

    def test_create_order_snapshots_lines_and_totals(self):
        order = OrderService.create_order(
            self.user,
            [
                {
                    "product_name": "Ribeye",
                    "species": "BEEF",
                    "base_price_cents": 1500,
                    "options": [{"option_id": "o1", "label": "Vacuum packed", "price_delta_cents": 100}],
                    "quantity": 2,
                },
                {"product_name": "Chicken breast", "base_price_cents": 800},
            ],
            pickup_gym=self.gym,
        )

        self.assertEqual(order.state, OrderState.PENDING)
        self.assertEqual(order.total_cents, 2 * 1600 + 800)
        self.assertEqual(order.subtotal_cents, order.total_cents)
        self.assertEqual(order.pickup_gym_name, "Iron Temple")
        self.assertEqual(len(order.short_code), 6)
        self.assertTrue(order.short_code.isdigit())
        self.assertEqual(order.lines.count(), 2)
        self.assertFalse(order.lines.exclude(state=LineState.PENDING).exists())

        ribeye = order.lines.get(product_name="Ribeye")
        self.assertEqual(ribeye.prep_labels, ["Vacuum packed"])

    def test_empty_cart_rejected(self):
        with self.assertRaises(BusinessLogicException):
            OrderService.create_order(self.user, [])
        self.assertEqual(Order.objects.count(), 0)

    def test_short_code_exhaustion(self):
        make_order(self.user)
        taken = Order.objects.get().short_code
        with patch("apps.orders.services.generate_numeric_code", return_value=taken):
            with self.assertRaises(BusinessLogicException) as ctx:
                OrderService.generate_short_code()
        self.assertEqual(ctx.exception.code, "short_code_exhausted")


class LineServiceTests(TestCase):
    def setUp(self):
        self.customer = User.objects.create_user(email="cust@example.com", password="pass12345")
        self.butcher = User.objects.create_user(email="butcher@example.com", password="pass12345")
        ButcherAdmin.objects.create(user=self.butcher, role=ButcherRole.PREP_ONLY)

    def lines(self, order):
        return list(order.lines.order_by("created_at", "id"))

    def test_first_line_preparing_promotes_order(self):
        order = make_order(self.customer, line_states=[LineState.PENDING, LineState.PENDING])
        first = self.lines(order)[0]

        line, order = LineService.set_state(first.id, LineState.PREPARING, self.butcher)

        self.assertEqual(line.state, LineState.PREPARING)
        self.assertEqual(line.version, 1)
        order.refresh_from_db()
        self.assertEqual(order.state, OrderState.PREPARING)
        self.assertEqual(order.version, 1)
        self.assertEqual(OrderTimeline.objects.filter(order=order).count(), 2)

    def test_send_rejected_while_a_sibling_is_not_ready(self):
        order = make_order(
            self.customer,
            state=OrderState.PREPARING,
            line_states=[LineState.READY, LineState.READY, LineState.PREPARING],
        )
        first = self.lines(order)[0]

        with self.assertRaises(NotSendable) as ctx:
            LineService.set_state(first.id, LineState.SENT, self.butcher)

        self.assertEqual(str(ctx.exception), "All lines must be READY before sending out")
        first.refresh_from_db()
        order.refresh_from_db()
        self.assertEqual(first.state, LineState.READY)
        self.assertEqual(order.state, OrderState.PREPARING)
        self.assertFalse(OrderTimeline.objects.exists())

    def test_only_last_send_moves_order_in_transit(self):
        order = make_order(
            self.customer,
            state=OrderState.READY_FOR_DELIVERY,
            line_states=[LineState.READY, LineState.READY],
        )
        first, second = self.lines(order)

        _, order = LineService.set_state(first.id, LineState.SENT, self.butcher)
        self.assertEqual(order.state, OrderState.READY_FOR_DELIVERY)

        _, order = LineService.set_state(second.id, LineState.SENT, self.butcher)
        self.assertEqual(order.state, OrderState.IN_TRANSIT)
        self.assertEqual(Order.objects.get(id=order.id).state, OrderState.IN_TRANSIT)

    def test_undo_send_before_arrival(self):
        order = make_order(
            self.customer,
            state=OrderState.IN_TRANSIT,
            line_states=[LineState.SENT, LineState.SENT],
        )
        first = self.lines(order)[0]

        line, order = LineService.set_state(first.id, LineState.READY, self.butcher)

        self.assertEqual(line.state, LineState.READY)
        self.assertEqual(order.state, OrderState.READY_FOR_DELIVERY)

    def test_last_line_ready_promotes_ready_for_delivery(self):
        order = make_order(
            self.customer,
            state=OrderState.PREPARING,
            line_states=[LineState.READY, LineState.PREPARING],
        )
        second = self.lines(order)[1]

        _, order = LineService.set_state(second.id, LineState.READY, self.butcher)
        self.assertEqual(order.state, OrderState.READY_FOR_DELIVERY)

    def test_line_back_to_preparing_demotes_order(self):
        order = make_order(
            self.customer,
            state=OrderState.READY_FOR_DELIVERY,
            line_states=[LineState.READY, LineState.READY],
        )
        first = self.lines(order)[0]

        _, order = LineService.set_state(first.id, LineState.PREPARING, self.butcher)
        self.assertEqual(order.state, OrderState.PREPARING)

    def test_edit_lock_after_arrival(self):
        for state in (OrderState.AT_GYM, OrderState.PICKED_UP, OrderState.CANCELLED):
            order = make_order(self.customer, state=state, line_states=[LineState.SENT])
            line = self.lines(order)[0]
            with self.subTest(state=state):
                with self.assertRaises(OrderNotEditable):
                    LineService.set_state(line.id, LineState.READY, self.butcher)
                line.refresh_from_db()
                self.assertEqual(line.state, LineState.SENT)

    def test_invalid_line_transition_leaves_state(self):
        order = make_order(self.customer, line_states=[LineState.PENDING])
        line = self.lines(order)[0]

        with self.assertRaises(InvalidTransition) as ctx:
            LineService.set_state(line.id, LineState.READY, self.butcher)

        self.assertEqual(ctx.exception.extra["allowed_next"], ["PREPARING"])
        line.refresh_from_db()
        self.assertEqual(line.state, LineState.PENDING)

    def test_stale_version_rejected(self):
        order = make_order(self.customer, line_states=[LineState.PENDING])
        line = self.lines(order)[0]

        with self.assertRaises(ConcurrentModification) as ctx:
            LineService.set_state(line.id, LineState.PREPARING, self.butcher, expected_version=3)

        self.assertEqual(ctx.exception.extra["current_version"], 0)
        line.refresh_from_db()
        self.assertEqual(line.state, LineState.PENDING)

    def test_unknown_line(self):
        with self.assertRaises(NotFound):
            LineService.set_state(uuid.uuid4(), LineState.PREPARING, self.butcher)


class ButcherOrderServiceTests(TestCase):
    def setUp(self):
        self.customer = User.objects.create_user(email="cust@example.com", password="pass12345")
        self.butcher = User.objects.create_user(email="butcher@example.com", password="pass12345")

    def test_pending_to_preparing(self):
        order = make_order(self.customer)
        order = OrderService.set_state_as_butcher(order.id, OrderState.PREPARING, self.butcher)
        self.assertEqual(order.state, OrderState.PREPARING)
        self.assertEqual(order.version, 1)

    def test_ready_for_delivery_requires_sendable(self):
        order = make_order(
            self.customer,
            state=OrderState.PREPARING,
            line_states=[LineState.READY, LineState.PREPARING],
        )
        with self.assertRaises(NotSendable):
            OrderService.set_state_as_butcher(order.id, OrderState.READY_FOR_DELIVERY, self.butcher)
        order.refresh_from_db()
        self.assertEqual(order.state, OrderState.PREPARING)

    def test_in_transit_marks_ready_lines_sent(self):
        order = make_order(
            self.customer,
            state=OrderState.READY_FOR_DELIVERY,
            line_states=[LineState.READY, LineState.SENT],
        )
        order = OrderService.set_state_as_butcher(order.id, OrderState.IN_TRANSIT, self.butcher)

        self.assertEqual(order.state, OrderState.IN_TRANSIT)
        self.assertEqual(
            set(order.lines.values_list("state", flat=True)), {LineState.SENT}
        )

    def test_in_transit_records_each_flipped_line(self):
        order = make_order(
            self.customer,
            state=OrderState.READY_FOR_DELIVERY,
            line_states=[LineState.READY, LineState.READY, LineState.SENT],
        )
        ready_ids = set(order.lines.filter(state=LineState.READY).values_list("id", flat=True))

        OrderService.set_state_as_butcher(order.id, OrderState.IN_TRANSIT, self.butcher)

        line_rows = OrderTimeline.objects.filter(order=order, line__isnull=False)
        self.assertEqual(set(line_rows.values_list("line_id", flat=True)), ready_ids)
        for row in line_rows:
            self.assertEqual((row.from_state, row.to_state), (LineState.READY, LineState.SENT))
            self.assertEqual(row.created_by, self.butcher)
        self.assertTrue(
            OrderTimeline.objects.filter(
                order=order, line__isnull=True, to_state=OrderState.IN_TRANSIT
            ).exists()
        )

    def test_butcher_cannot_mark_arrival(self):
        order = make_order(self.customer, state=OrderState.IN_TRANSIT, line_states=[LineState.SENT])
        with self.assertRaises(InvalidTransition):
            OrderService.set_state_as_butcher(order.id, OrderState.AT_GYM, self.butcher)

    def test_cancel_while_preparing(self):
        order = make_order(self.customer, state=OrderState.PREPARING, line_states=[LineState.PREPARING])
        order = OrderService.set_state_as_butcher(order.id, OrderState.CANCELLED, self.butcher)
        self.assertEqual(order.state, OrderState.CANCELLED)

    def test_stale_order_version(self):
        order = make_order(self.customer)
        with self.assertRaises(ConcurrentModification):
            OrderService.set_state_as_butcher(order.id, OrderState.PREPARING, self.butcher, expected_version=7)


class GymOrderServiceTests(TestCase):
    def setUp(self):
        self.customer = User.objects.create_user(email="cust@example.com", password="pass12345", full_name="Kim")
        self.staff = User.objects.create_user(email="desk@example.com", password="pass12345")
        self.gym = Gym.objects.create(name="Iron Temple")
        self.other_gym = Gym.objects.create(name="Muscle Barn")
        GymAdmin.objects.create(gym=self.gym, user=self.staff)

    def test_arrival_stamps_time_and_emails_customer(self):
        order = make_order(self.customer, gym=self.gym, state=OrderState.IN_TRANSIT, line_states=[LineState.SENT])

        with self.captureOnCommitCallbacks(execute=True):
            order = OrderService.set_state_as_gym(order.id, OrderState.AT_GYM, self.staff, [self.gym.id])

        self.assertEqual(order.state, OrderState.AT_GYM)
        self.assertIsNotNone(order.arrived_at)
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ["cust@example.com"])
        self.assertIn(f"#{order.short_code}", mail.outbox[0].subject)
        self.assertIn("Iron Temple", mail.outbox[0].body)

    def test_enqueue_failure_does_not_undo_arrival(self):
        order = make_order(self.customer, gym=self.gym, state=OrderState.IN_TRANSIT, line_states=[LineState.SENT])

        with patch("apps.notifications.tasks.send_order_arrived_email.delay", side_effect=ConnectionError("broker down")):
            with self.captureOnCommitCallbacks(execute=True):
                OrderService.set_state_as_gym(order.id, OrderState.AT_GYM, self.staff, [self.gym.id])

        order.refresh_from_db()
        self.assertEqual(order.state, OrderState.AT_GYM)
        self.assertEqual(len(mail.outbox), 0)

    def test_pickup_stamps_time(self):
        order = make_order(self.customer, gym=self.gym, state=OrderState.AT_GYM, line_states=[LineState.SENT])
        order = OrderService.set_state_as_gym(order.id, OrderState.PICKED_UP, self.staff, [self.gym.id])
        self.assertEqual(order.state, OrderState.PICKED_UP)
        self.assertIsNotNone(order.picked_up_at)

    def test_other_gym_order_is_not_found(self):
        order = make_order(self.customer, gym=self.other_gym, state=OrderState.IN_TRANSIT, line_states=[LineState.SENT])
        with self.assertRaises(NotFound):
            OrderService.set_state_as_gym(order.id, OrderState.AT_GYM, self.staff, [self.gym.id])

    def test_gym_cannot_skip_arrival(self):
        order = make_order(self.customer, gym=self.gym, state=OrderState.IN_TRANSIT, line_states=[LineState.SENT])
        with self.assertRaises(InvalidTransition):
            OrderService.set_state_as_gym(order.id, OrderState.PICKED_UP, self.staff, [self.gym.id])


class ButcherAPITests(APITestCase):
    def setUp(self):
        self.customer = User.objects.create_user(email="cust@example.com", password="pass12345")
        self.butcher = User.objects.create_user(email="butcher@example.com", password="pass12345")
        ButcherAdmin.objects.create(user=self.butcher, role=ButcherRole.PREP_ONLY)
        self.client.force_authenticate(self.butcher)

    def test_line_state_change(self):
        order = make_order(self.customer, line_states=[LineState.PENDING])
        line = order.lines.get()

        response = self.client.patch(
            f"/api/v1/butcher/lines/{line.id}/state/", {"state": "PREPARING", "version": 0}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data["ok"])
        self.assertEqual(response.data["line"]["state"], "PREPARING")
        self.assertEqual(response.data["order"]["state"], "PREPARING")

    def test_invalid_line_transition_payload(self):
        order = make_order(self.customer, line_states=[LineState.PENDING])
        line = order.lines.get()

        response = self.client.patch(f"/api/v1/butcher/lines/{line.id}/state/", {"state": "SENT"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "invalid_transition")
        self.assertEqual(response.data["current_state"], "PENDING")
        self.assertEqual(response.data["requested_state"], "SENT")
        self.assertEqual(response.data["allowed_next"], ["PREPARING"])

    def test_stale_version_is_conflict(self):
        order = make_order(self.customer, line_states=[LineState.PENDING])
        line = order.lines.get()

        response = self.client.patch(
            f"/api/v1/butcher/lines/{line.id}/state/", {"state": "PREPARING", "version": 4}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["code"], "concurrent_modification")

    def test_order_state_rejects_gym_only_target(self):
        order = make_order(self.customer, state=OrderState.IN_TRANSIT, line_states=[LineState.SENT])
        response = self.client.patch(f"/api/v1/butcher/orders/{order.id}/state/", {"state": "AT_GYM"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("state", response.data)

    def test_order_state_not_sendable(self):
        order = make_order(self.customer, state=OrderState.PREPARING, line_states=[LineState.PREPARING])
        response = self.client.patch(
            f"/api/v1/butcher/orders/{order.id}/state/", {"state": "READY_FOR_DELIVERY"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "not_sendable")

    def test_order_queue_flags_sendable(self):
        ready = make_order(self.customer, state=OrderState.PREPARING, line_states=[LineState.READY])
        make_order(self.customer, state=OrderState.PREPARING, line_states=[LineState.PREPARING])
        make_order(self.customer, state=OrderState.PICKED_UP, line_states=[LineState.SENT])

        response = self.client.get("/api/v1/butcher/orders/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        results = response.data["results"]
        self.assertEqual(len(results), 2)
        flags = {row["id"]: row["sendable"] for row in results}
        self.assertTrue(flags[str(ready.id)])
        self.assertEqual(sum(flags.values()), 1)

    def test_order_queue_state_filter(self):
        make_order(self.customer, state=OrderState.PICKED_UP, line_states=[LineState.SENT])
        response = self.client.get("/api/v1/butcher/orders/", {"state": "PICKED_UP"})
        self.assertEqual(response.data["count"], 1)

    def test_line_queue_positions(self):
        order = make_order(
            self.customer,
            state=OrderState.PREPARING,
            line_states=[LineState.PREPARING, LineState.READY, LineState.PENDING],
        )

        response = self.client.get("/api/v1/butcher/lines/", {"line_state": "READY"})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        rows = response.data["results"]
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["order"]["short_code"], order.short_code)
        self.assertEqual(rows[0]["index_of"]["n"], 3)
        self.assertIn(rows[0]["index_of"]["i"], (1, 2, 3))

    def test_non_butcher_forbidden(self):
        self.client.force_authenticate(self.customer)
        response = self.client.get("/api/v1/butcher/orders/")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_anonymous_unauthorized(self):
        self.client.force_authenticate(None)
        response = self.client.get("/api/v1/butcher/lines/")
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class GymAPITests(APITestCase):
    def setUp(self):
        self.customer = User.objects.create_user(email="cust@example.com", password="pass12345")
        self.staff = User.objects.create_user(email="desk@example.com", password="pass12345")
        self.gym = Gym.objects.create(name="Iron Temple")
        self.other_gym = Gym.objects.create(name="Muscle Barn")
        GymAdmin.objects.create(gym=self.gym, user=self.staff)
        self.client.force_authenticate(self.staff)

    def test_list_scoped_to_own_gyms(self):
        mine = make_order(self.customer, gym=self.gym, state=OrderState.IN_TRANSIT, line_states=[LineState.SENT])
        make_order(self.customer, gym=self.other_gym, state=OrderState.IN_TRANSIT, line_states=[LineState.SENT])

        response = self.client.get("/api/v1/gym/orders/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        ids = [row["id"] for row in response.data["results"]]
        self.assertEqual(ids, [str(mine.id)])
        self.assertEqual(response.data["results"][0]["customer_email"], "cust@example.com")

    def test_arrival_via_api(self):
        order = make_order(self.customer, gym=self.gym, state=OrderState.IN_TRANSIT, line_states=[LineState.SENT])

        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.patch(f"/api/v1/gym/orders/{order.id}/state/", {"state": "AT_GYM"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["order"]["state"], "AT_GYM")
        self.assertEqual(response.data["order"]["allowed_next"], ["CANCELLED", "PICKED_UP"])
        self.assertEqual(len(mail.outbox), 1)

    def test_other_gym_is_404(self):
        order = make_order(self.customer, gym=self.other_gym, state=OrderState.IN_TRANSIT, line_states=[LineState.SENT])
        response = self.client.patch(f"/api/v1/gym/orders/{order.id}/state/", {"state": "AT_GYM"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["code"], "not_found")

    def test_non_gym_admin_forbidden(self):
        self.client.force_authenticate(self.customer)
        response = self.client.get("/api/v1/gym/orders/")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class CustomerOrdersAPITests(APITestCase):
    def test_only_own_orders(self):
        me = User.objects.create_user(email="me@example.com", password="pass12345")
        other = User.objects.create_user(email="other@example.com", password="pass12345")
        mine = make_order(me)
        make_order(other)

        self.client.force_authenticate(me)
        response = self.client.get("/api/v1/orders/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row["id"] for row in response.data["results"]], [str(mine.id)])
        self.assertEqual(len(response.data["results"][0]["lines"]), 1)
