from collections import defaultdict

from rest_framework import generics
from rest_framework.views import APIView
from rest_framework.response import Response

from apps.accounts.permissions import IsButcher
from .filters import ButcherOrderFilter, LineQueueFilter
from .models import Order, OrderLine, OrderState, LineState
from .readiness import annotate_sendable
from .serializers import (
    ButcherOrderSerializer,
    QueuedLineSerializer,
    OrderLineSerializer,
    LineStateSerializer,
    ButcherOrderStateSerializer,
)
from .services import OrderService, LineService

# Shown when the client does not filter explicitly
BUTCHER_QUEUE_ORDER_STATES = (
    OrderState.PENDING,
    OrderState.PREPARING,
    OrderState.READY_FOR_DELIVERY,
)
BUTCHER_QUEUE_LINE_STATES = (
    LineState.PENDING,
    LineState.PREPARING,
    LineState.READY,
)


def line_positions(lines):
    """
    {line_id: (i, n)}: 1-based position of each line among all lines of its order.
    """
    order_ids = {line.order_id for line in lines}
    grouped = defaultdict(list)
    siblings = (
        OrderLine.objects.filter(order_id__in=order_ids)
        .order_by('created_at', 'id')
        .values_list('id', 'order_id')
    )
    for line_id, order_id in siblings:
        grouped[order_id].append(line_id)

    positions = {}
    for ids in grouped.values():
        for index, line_id in enumerate(ids, start=1):
            positions[line_id] = (index, len(ids))
    return positions


class ButcherOrderQueueView(generics.ListAPIView):
    """
    FIFO order queue for the prep room, with lines and the `sendable` flag.
    """
    serializer_class = ButcherOrderSerializer
    permission_classes = [IsButcher]
    filterset_class = ButcherOrderFilter

    def get_queryset(self):
        qs = annotate_sendable(Order.objects.all()).prefetch_related('lines').order_by('created_at')
        if 'state' not in self.request.query_params:
            qs = qs.filter(state__in=BUTCHER_QUEUE_ORDER_STATES)
        return qs


class ButcherLineQueueView(generics.ListAPIView):
    """
    Flat FIFO line queue: oldest order first, lines in checkout order.
    """
    serializer_class = QueuedLineSerializer
    permission_classes = [IsButcher]
    filterset_class = LineQueueFilter

    def get_queryset(self):
        qs = OrderLine.objects.select_related('order').order_by('order__created_at', 'created_at', 'id')
        params = self.request.query_params
        if 'line_state' not in params:
            qs = qs.filter(state__in=BUTCHER_QUEUE_LINE_STATES)
        if 'order_state' not in params:
            qs = qs.filter(order__state__in=BUTCHER_QUEUE_ORDER_STATES)
        return qs

    def list(self, request, *args, **kwargs):
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        rows = page if page is not None else list(queryset)

        context = {**self.get_serializer_context(), 'positions': line_positions(rows)}
        data = self.get_serializer_class()(rows, many=True, context=context).data
        if page is not None:
            return self.get_paginated_response(data)
        return Response(data)


class ButcherLineStateView(APIView):
    permission_classes = [IsButcher]

    def patch(self, request, pk):
        serializer = LineStateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        line, order = LineService.set_state(
            pk,
            serializer.validated_data['state'],
            request.user,
            expected_version=serializer.validated_data.get('version'),
        )
        return Response({
            "ok": True,
            "line": OrderLineSerializer(line).data,
            "order": ButcherOrderSerializer(order).data,
        })


class ButcherOrderStateView(APIView):
    permission_classes = [IsButcher]

    def patch(self, request, pk):
        serializer = ButcherOrderStateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = OrderService.set_state_as_butcher(
            pk,
            serializer.validated_data['state'],
            request.user,
            expected_version=serializer.validated_data.get('version'),
        )
        return Response({"ok": True, "order": ButcherOrderSerializer(order).data})
