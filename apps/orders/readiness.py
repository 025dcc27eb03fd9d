from django.db.models import Count, Q, Case, When, BooleanField, Value

from .models import OrderState, LineState

SENDABLE_LINE_STATES = frozenset({LineState.READY, LineState.SENT})


def is_sendable(line_states) -> bool:
    """
    True when the order has lines and every one is READY or SENT.
    """
    states = list(line_states)
    return bool(states) and all(s in SENDABLE_LINE_STATES for s in states)


def derive_order_state(line_states, current):
    """
    Order state implied by its lines after a line transition.

    - all SENT               -> IN_TRANSIT
    - all READY or SENT      -> READY_FOR_DELIVERY
    - all PENDING, untouched -> PENDING
    - anything else          -> PREPARING
    """
    states = list(line_states)
    if not states:
        return current
    if all(s == LineState.SENT for s in states):
        return OrderState.IN_TRANSIT
    if is_sendable(states):
        return OrderState.READY_FOR_DELIVERY
    if current == OrderState.PENDING and all(s == LineState.PENDING for s in states):
        return OrderState.PENDING
    return OrderState.PREPARING


def annotate_sendable(queryset):
    """
    Adds `line_count`, `unready_count` and the computed `sendable` flag.
    """
    return queryset.annotate(
        line_count=Count("lines", distinct=True),
        unready_count=Count(
            "lines",
            filter=~Q(lines__state__in=SENDABLE_LINE_STATES),
            distinct=True,
        ),
    ).annotate(
        sendable=Case(
            When(line_count__gt=0, unready_count=0, then=Value(True)),
            default=Value(False),
            output_field=BooleanField(),
        )
    )
