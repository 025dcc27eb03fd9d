from rest_framework import serializers

from .models import Order, OrderLine, OrderState, LineState
from .readiness import is_sendable
from .state_machine import LINE_MACHINE, BUTCHER_ORDER_MACHINE, GYM_ORDER_MACHINE


class OrderLineSerializer(serializers.ModelSerializer):
    unit_cents = serializers.IntegerField(read_only=True)
    total_cents = serializers.IntegerField(read_only=True)
    prep_labels = serializers.ListField(child=serializers.CharField(), read_only=True)
    allowed_next = serializers.SerializerMethodField()

    class Meta:
        model = OrderLine
        fields = [
            'id', 'product_id', 'product_name', 'species', 'part', 'unit_label',
            'variant_size_grams', 'quantity', 'base_price_cents', 'unit_cents',
            'total_cents', 'options', 'prep_labels', 'state', 'allowed_next', 'version',
        ]

    def get_allowed_next(self, obj):
        return sorted(LINE_MACHINE.allowed_next(obj.state))


class OrderSummarySerializer(serializers.ModelSerializer):
    """
    Customer view of an order.
    """
    lines = OrderLineSerializer(many=True, read_only=True)
    state_display = serializers.CharField(source='get_state_display', read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'short_code', 'state', 'state_display', 'subtotal_cents', 'total_cents',
            'pickup_gym_name', 'pickup_when', 'notes', 'arrived_at', 'picked_up_at',
            'created_at', 'lines',
        ]


class ButcherOrderSerializer(serializers.ModelSerializer):
    lines = OrderLineSerializer(many=True, read_only=True)
    sendable = serializers.SerializerMethodField()
    allowed_next = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            'id', 'short_code', 'state', 'allowed_next', 'sendable', 'total_cents',
            'pickup_gym_id', 'pickup_gym_name', 'pickup_when', 'notes',
            'version', 'created_at', 'lines',
        ]

    def get_sendable(self, obj):
        annotated = getattr(obj, 'sendable', None)
        if annotated is not None:
            return bool(annotated)
        return is_sendable(line.state for line in obj.lines.all())

    def get_allowed_next(self, obj):
        return sorted(BUTCHER_ORDER_MACHINE.allowed_next(obj.state))


class GymOrderSerializer(serializers.ModelSerializer):
    lines = OrderLineSerializer(many=True, read_only=True)
    customer_email = serializers.EmailField(source='user.email', read_only=True)
    customer_name = serializers.CharField(source='user.full_name', read_only=True)
    allowed_next = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            'id', 'short_code', 'state', 'allowed_next', 'total_cents',
            'pickup_gym_id', 'pickup_gym_name', 'pickup_when', 'notes',
            'customer_email', 'customer_name', 'arrived_at', 'picked_up_at',
            'gym_settlement_id', 'version', 'created_at', 'lines',
        ]

    def get_allowed_next(self, obj):
        return sorted(GYM_ORDER_MACHINE.allowed_next(obj.state))


class QueuedLineSerializer(OrderLineSerializer):
    """
    Flat prep queue row: the line plus its order context and its
    1-based position among the order's lines.
    """
    order = serializers.SerializerMethodField()
    index_of = serializers.SerializerMethodField()

    class Meta(OrderLineSerializer.Meta):
        fields = OrderLineSerializer.Meta.fields + ['order', 'index_of']

    def get_order(self, obj):
        order = obj.order
        return {
            "id": str(order.id),
            "short_code": order.short_code,
            "state": order.state,
            "pickup_gym_name": order.pickup_gym_name,
            "pickup_when": order.pickup_when,
            "version": order.version,
        }

    def get_index_of(self, obj):
        i, n = self.context.get('positions', {}).get(obj.id, (None, None))
        return {"i": i, "n": n}


class LineStateSerializer(serializers.Serializer):
    state = serializers.ChoiceField(choices=LineState.choices)
    version = serializers.IntegerField(required=False, min_value=0)


class ButcherOrderStateSerializer(serializers.Serializer):
    state = serializers.ChoiceField(choices=[
        OrderState.PREPARING,
        OrderState.READY_FOR_DELIVERY,
        OrderState.IN_TRANSIT,
        OrderState.CANCELLED,
    ])
    version = serializers.IntegerField(required=False, min_value=0)


class GymOrderStateSerializer(serializers.Serializer):
    state = serializers.ChoiceField(choices=[
        OrderState.AT_GYM,
        OrderState.PICKED_UP,
        OrderState.CANCELLED,
    ])
    version = serializers.IntegerField(required=False, min_value=0)
