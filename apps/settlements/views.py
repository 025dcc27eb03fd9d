from django.db.models import Prefetch
from rest_framework import generics, status
from rest_framework.response import Response

from apps.accounts.permissions import IsButcher, IsButcherSettler, IsGymAdmin
from apps.accounts.services import RoleService
from apps.orders.models import Order
from .filters import GymSettlementFilter
from .models import GymSettlement, ButcherSettlement
from .serializers import (
    GymSettlementSerializer,
    ButcherSettlementSerializer,
    SettleRequestSerializer,
    GymSettleRequestSerializer,
)
from .services import GymSettlementBatcher, ButcherSettlementBatcher


def _member_orders():
    return Prefetch('orders', queryset=Order.objects.order_by('created_at'))


def _settle_response(result):
    created = result.get("settlement_id") is not None
    return Response(result, status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)


class GymSettlementView(generics.ListAPIView):
    """
    GET: settlement history of the gyms the caller administers.
    POST: close all picked-up, unsettled orders of one gym.
    """
    serializer_class = GymSettlementSerializer
    permission_classes = [IsGymAdmin]
    filterset_class = GymSettlementFilter

    def get_queryset(self):
        return GymSettlement.objects.filter(
            gym_id__in=RoleService.get_admin_gym_ids(self.request.user)
        ).select_related('gym', 'created_by').prefetch_related(_member_orders())

    def post(self, request):
        serializer = GymSettleRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = GymSettlementBatcher().settle_for(request.user, **serializer.validated_data)
        return _settle_response(result)


class ButcherSettlementView(generics.ListAPIView):
    serializer_class = ButcherSettlementSerializer
    queryset = ButcherSettlement.objects.select_related('created_by').prefetch_related(_member_orders())

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsButcherSettler()]
        return [IsButcher()]

    def post(self, request):
        serializer = SettleRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = ButcherSettlementBatcher().settle(request.user, **serializer.validated_data)
        return _settle_response(result)
