from rest_framework import serializers
from apps.orders.models import Order
from .models import GymSettlement, ButcherSettlement


class SettledOrderSerializer(serializers.ModelSerializer):
    class Meta:
        model = Order
        fields = ['id', 'short_code', 'total_cents', 'pickup_gym_name', 'picked_up_at']


class GymSettlementSerializer(serializers.ModelSerializer):
    gym_name = serializers.CharField(source='gym.name', read_only=True)
    created_by_email = serializers.EmailField(source='created_by.email', read_only=True)
    orders = SettledOrderSerializer(many=True, read_only=True)

    class Meta:
        model = GymSettlement
        fields = [
            'id', 'gym_id', 'gym_name', 'order_count', 'total_cents',
            'notes', 'created_by_email', 'created_at', 'orders',
        ]


class ButcherSettlementSerializer(serializers.ModelSerializer):
    created_by_email = serializers.EmailField(source='created_by.email', read_only=True)
    orders = SettledOrderSerializer(many=True, read_only=True)

    class Meta:
        model = ButcherSettlement
        fields = [
            'id', 'order_count', 'total_cents', 'notes',
            'created_by_email', 'created_at', 'orders',
        ]


class SettleRequestSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True, default="", max_length=2000)
    dry_run = serializers.BooleanField(required=False, default=False)


class GymSettleRequestSerializer(SettleRequestSerializer):
    gym_id = serializers.UUIDField(required=False, allow_null=True, default=None)
