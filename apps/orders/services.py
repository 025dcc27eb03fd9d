import logging
from django.conf import settings
from django.db import transaction, IntegrityError
from django.db.models import F
from django.utils import timezone
from rest_framework.exceptions import NotFound

from apps.utils.exceptions import (
    BusinessLogicException,
    ConcurrentModification,
    NotSendable,
    OrderNotEditable,
)
from apps.utils.utils import generate_numeric_code
from .models import Order, OrderLine, OrderTimeline, OrderState, LineState
from .readiness import is_sendable, derive_order_state
from .state_machine import (
    Actor,
    LINE_MACHINE,
    LINE_EDITABLE_ORDER_STATES,
    order_machine_for,
)

logger = logging.getLogger(__name__)


def _check_version(obj, expected_version):
    if expected_version is not None and expected_version != obj.version:
        raise ConcurrentModification(
            f"{obj.__class__.__name__} was modified by someone else. Reload and retry.",
            extra={"current_version": obj.version},
        )


def _compare_and_swap(model, obj, **changes):
    """
    Writes `changes` only if the row still carries the version we read.
    Keeps `obj` in sync on success.
    """
    updated = model.objects.filter(pk=obj.pk, version=obj.version).update(
        version=F("version") + 1, updated_at=timezone.now(), **changes
    )
    if updated != 1:
        raise ConcurrentModification(
            f"{model.__name__} {obj.pk} changed while being updated. Reload and retry."
        )
    for field, value in changes.items():
        setattr(obj, field, value)
    obj.version += 1
    return obj


class OrderService:

    @staticmethod
    def generate_short_code() -> str:
        length = settings.SHORT_CODE_LENGTH
        for _ in range(settings.SHORT_CODE_MAX_ATTEMPTS):
            code = generate_numeric_code(length)
            if not Order.objects.filter(short_code=code).exists():
                return code
        raise BusinessLogicException("Could not allocate an order code, please retry.", code="short_code_exhausted")

    @staticmethod
    def create_order(user, lines: list, pickup_gym=None, pickup_when=None, notes: str = ""):
        """
        Checkout: persists a PENDING order with one snapshot row per cart line.

        Each entry of `lines`:
            {"product_id", "product_name", "species", "part", "unit_label",
             "variant_size_grams", "base_price_cents", "options", "quantity"}
        """
        if not lines:
            raise BusinessLogicException("Cart is empty.", code="cart_empty")

        line_rows = [
            OrderLine(
                product_id=data.get("product_id"),
                product_name=data["product_name"],
                species=data.get("species") or "OTHER",
                part=data.get("part"),
                unit_label=data.get("unit_label"),
                variant_size_grams=data.get("variant_size_grams"),
                base_price_cents=data["base_price_cents"],
                options=data.get("options") or [],
                quantity=data.get("quantity", 1),
            )
            for data in lines
        ]
        subtotal = sum(row.total_cents for row in line_rows)

        try:
            with transaction.atomic():
                order = Order.objects.create(
                    user=user,
                    short_code=OrderService.generate_short_code(),
                    state=OrderState.PENDING,
                    pickup_gym=pickup_gym,
                    pickup_gym_name=pickup_gym.name if pickup_gym else None,
                    pickup_when=pickup_when,
                    subtotal_cents=subtotal,
                    total_cents=subtotal,
                    notes=notes or "",
                )
                for row in line_rows:
                    row.order = order
                OrderLine.objects.bulk_create(line_rows)
        except IntegrityError:
            # Lost the short code race between the existence check and the insert
            logger.warning("Short code collision on insert, order not created.")
            raise BusinessLogicException("Could not allocate an order code, please retry.", code="short_code_exhausted")

        logger.info(f"Order created: #{order.short_code} ({len(line_rows)} lines, {subtotal} cents)",
                    extra={"order_id": order.id, "user_id": user.id})
        return order

    @staticmethod
    def _record(order, from_state, to_state, actor_user, line=None, note=""):
        OrderTimeline.objects.create(
            order=order,
            line=line,
            from_state=from_state,
            to_state=to_state,
            created_by=actor_user,
            note=note,
        )

    @staticmethod
    @transaction.atomic
    def set_state_as_butcher(order_id, target, actor_user, expected_version=None):
        """
        Butcher-side order transitions:
        PENDING -> PREPARING -> READY_FOR_DELIVERY -> IN_TRANSIT, or CANCELLED.
        Moving on to READY_FOR_DELIVERY / IN_TRANSIT requires every line READY or SENT;
        IN_TRANSIT also marks the remaining READY lines SENT.
        """
        try:
            order = Order.objects.select_for_update().get(id=order_id)
        except Order.DoesNotExist:
            raise NotFound("Order not found.")

        _check_version(order, expected_version)
        order_machine_for(Actor.BUTCHER).check(order.state, target)

        if target in (OrderState.READY_FOR_DELIVERY, OrderState.IN_TRANSIT):
            line_states = list(order.lines.values_list("state", flat=True))
            if not is_sendable(line_states):
                raise NotSendable("All lines must be READY before sending out")

        previous = order.state
        if target == OrderState.IN_TRANSIT:
            ready_lines = list(order.lines.select_for_update().filter(state=LineState.READY))
            order.lines.filter(id__in=[line.id for line in ready_lines]).update(
                state=LineState.SENT, version=F("version") + 1, updated_at=timezone.now()
            )
            OrderTimeline.objects.bulk_create([
                OrderTimeline(
                    order=order,
                    line=line,
                    from_state=LineState.READY,
                    to_state=LineState.SENT,
                    created_by=actor_user,
                    note="sent with order",
                )
                for line in ready_lines
            ])

        _compare_and_swap(Order, order, state=target)
        OrderService._record(order, previous, target, actor_user)
        logger.info(f"Order #{order.short_code}: {previous} -> {target} (butcher)",
                    extra={"order_id": order.id, "user_id": actor_user.id})
        return order

    @staticmethod
    @transaction.atomic
    def set_state_as_gym(order_id, target, actor_user, gym_ids, expected_version=None):
        """
        Gym-side order transitions: IN_TRANSIT -> AT_GYM -> PICKED_UP / CANCELLED.
        Orders of gyms outside `gym_ids` are reported as not found.
        """
        try:
            order = Order.objects.select_for_update().get(id=order_id, pickup_gym_id__in=gym_ids)
        except Order.DoesNotExist:
            raise NotFound("Order not found.")

        _check_version(order, expected_version)
        order_machine_for(Actor.GYM).check(order.state, target)

        previous = order.state
        changes = {"state": target}
        if target == OrderState.AT_GYM:
            changes["arrived_at"] = timezone.now()
        elif target == OrderState.PICKED_UP:
            changes["picked_up_at"] = timezone.now()

        _compare_and_swap(Order, order, **changes)
        OrderService._record(order, previous, target, actor_user)
        logger.info(f"Order #{order.short_code}: {previous} -> {target} (gym)",
                    extra={"order_id": order.id, "gym_id": order.pickup_gym_id})

        if target == OrderState.AT_GYM:
            from apps.notifications.services import NotificationService
            NotificationService.notify_order_arrived(order)
        return order


class LineService:

    @staticmethod
    @transaction.atomic
    def set_state(line_id, target, actor_user, expected_version=None):
        """
        Butcher-side line transition plus the order-level consequences.

        1. Lock parent order, then the line
        2. Edit lock: order must still be with the butcher
        3. Table guard, then the send barrier for SENT
        4. CAS write of the line, re-derive the order state from all lines
        Returns (line, order).
        """
        try:
            order_id = OrderLine.objects.values_list("order_id", flat=True).get(id=line_id)
        except OrderLine.DoesNotExist:
            raise NotFound("Line not found.")

        order = Order.objects.select_for_update().get(id=order_id)
        line = OrderLine.objects.select_for_update().get(id=line_id)

        if order.state not in LINE_EDITABLE_ORDER_STATES:
            raise OrderNotEditable(
                f"Order #{order.short_code} is {order.state} and can no longer be edited.",
                extra={"order_state": order.state},
            )

        _check_version(line, expected_version)
        LINE_MACHINE.check(line.state, target)

        if target == LineState.SENT:
            sibling_states = (
                OrderLine.objects.filter(order_id=order.id)
                .exclude(id=line.id)
                .values_list("state", flat=True)
            )
            if not is_sendable([line.state, *sibling_states]):
                raise NotSendable("All lines must be READY before sending out")

        previous_line_state = line.state
        _compare_and_swap(OrderLine, line, state=target)
        OrderService._record(order, previous_line_state, target, actor_user, line=line)

        all_states = list(OrderLine.objects.filter(order_id=order.id).values_list("state", flat=True))
        new_order_state = derive_order_state(all_states, order.state)
        if new_order_state != order.state:
            previous_order_state = order.state
            _compare_and_swap(Order, order, state=new_order_state)
            OrderService._record(
                order, previous_order_state, new_order_state, actor_user,
                note=f"Derived from line {line.id}",
            )
            logger.info(f"Order #{order.short_code}: {previous_order_state} -> {new_order_state} (derived)",
                        extra={"order_id": order.id, "line_id": line.id})

        return line, order
