from rest_framework import viewsets
from rest_framework.permissions import IsAuthenticated

from .models import Order
from .serializers import OrderSummarySerializer


class OrderViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Customer's own orders, newest first.
    """
    serializer_class = OrderSummarySerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        return (
            Order.objects.filter(user=self.request.user)
            .prefetch_related('lines')
            .order_by('-created_at')
        )
