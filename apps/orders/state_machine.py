"""
Transition tables for order lines and orders.

Lines have a single butcher-side machine. Orders have one authoritative
table whose edges are tagged with the actor role allowed to trigger them;
the butcher and gym machines are projections of that table.

    machine = BUTCHER_ORDER_MACHINE
    machine.allowed_next(OrderState.PREPARING)
    # frozenset({'READY_FOR_DELIVERY', 'CANCELLED'})
    machine.check(OrderState.PENDING, OrderState.IN_TRANSIT)
    # raises InvalidTransition
"""
from django.db import models

from apps.utils.exceptions import InvalidTransition
from .models import OrderState, LineState


class Actor(models.TextChoices):
    BUTCHER = "BUTCHER", "Butcher"
    GYM = "GYM", "Gym"


LINE_TRANSITIONS = {
    LineState.PENDING: frozenset({LineState.PREPARING}),
    LineState.PREPARING: frozenset({LineState.READY, LineState.PENDING}),
    LineState.READY: frozenset({LineState.PREPARING, LineState.SENT}),
    LineState.SENT: frozenset({LineState.READY}),
}

ORDER_TRANSITIONS = {
    OrderState.PENDING: {
        OrderState.PREPARING: {Actor.BUTCHER},
    },
    OrderState.PREPARING: {
        OrderState.READY_FOR_DELIVERY: {Actor.BUTCHER},
        OrderState.CANCELLED: {Actor.BUTCHER},
    },
    OrderState.READY_FOR_DELIVERY: {
        OrderState.IN_TRANSIT: {Actor.BUTCHER},
        OrderState.CANCELLED: {Actor.BUTCHER},
    },
    # Handoff: the gym takes over from here
    OrderState.IN_TRANSIT: {
        OrderState.AT_GYM: {Actor.GYM},
    },
    OrderState.AT_GYM: {
        OrderState.PICKED_UP: {Actor.GYM},
        OrderState.CANCELLED: {Actor.GYM},
    },
    OrderState.PICKED_UP: {},
    OrderState.CANCELLED: {},
}

# Line edits are accepted only while the order is still with the butcher
LINE_EDITABLE_ORDER_STATES = frozenset({
    OrderState.PENDING,
    OrderState.PREPARING,
    OrderState.READY_FOR_DELIVERY,
    OrderState.IN_TRANSIT,
})

TERMINAL_ORDER_STATES = frozenset(
    state for state, edges in ORDER_TRANSITIONS.items() if not edges
)


class StateMachine:
    """
    Table-backed guard. `table` maps state -> iterable of next states.
    """

    def __init__(self, name, table):
        self.name = name
        self._table = {
            state: frozenset(nxt) for state, nxt in table.items()
        }

    @property
    def states(self):
        return frozenset(self._table)

    def allowed_next(self, state) -> frozenset:
        return self._table.get(state, frozenset())

    def can_transition(self, current, requested) -> bool:
        return requested in self.allowed_next(current)

    def check(self, current, requested):
        if not self.can_transition(current, requested):
            raise InvalidTransition(current, requested, self.allowed_next(current))

    def __repr__(self):
        return f"<StateMachine {self.name}>"


def order_table_for(actor):
    return {
        state: {nxt for nxt, actors in edges.items() if actor in actors}
        for state, edges in ORDER_TRANSITIONS.items()
    }


LINE_MACHINE = StateMachine("line", LINE_TRANSITIONS)
BUTCHER_ORDER_MACHINE = StateMachine("order:butcher", order_table_for(Actor.BUTCHER))
GYM_ORDER_MACHINE = StateMachine("order:gym", order_table_for(Actor.GYM))


def order_machine_for(actor) -> StateMachine:
    if actor == Actor.BUTCHER:
        return BUTCHER_ORDER_MACHINE
    if actor == Actor.GYM:
        return GYM_ORDER_MACHINE
    raise ValueError(f"Unknown actor: {actor}")
