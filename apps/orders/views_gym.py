from rest_framework import generics
from rest_framework.views import APIView
from rest_framework.response import Response

from apps.accounts.permissions import IsGymAdmin
from apps.accounts.services import RoleService
from .filters import GymOrderFilter
from .models import Order, OrderState
from .serializers import GymOrderSerializer, GymOrderStateSerializer
from .services import OrderService

GYM_QUEUE_ORDER_STATES = (OrderState.IN_TRANSIT, OrderState.AT_GYM)


class GymOrderListView(generics.ListAPIView):
    """
    Orders bound for (or waiting at) the caller's gyms.
    """
    serializer_class = GymOrderSerializer
    permission_classes = [IsGymAdmin]
    filterset_class = GymOrderFilter

    def get_queryset(self):
        gym_ids = RoleService.get_admin_gym_ids(self.request.user)
        qs = (
            Order.objects.filter(pickup_gym_id__in=gym_ids)
            .select_related('user')
            .prefetch_related('lines')
            .order_by('created_at')
        )
        if 'state' not in self.request.query_params:
            qs = qs.filter(state__in=GYM_QUEUE_ORDER_STATES)
        return qs


class GymOrderStateView(APIView):
    permission_classes = [IsGymAdmin]

    def patch(self, request, pk):
        serializer = GymOrderStateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = OrderService.set_state_as_gym(
            pk,
            serializer.validated_data['state'],
            request.user,
            gym_ids=RoleService.get_admin_gym_ids(request.user),
            expected_version=serializer.validated_data.get('version'),
        )
        return Response({"ok": True, "order": GymOrderSerializer(order).data})
