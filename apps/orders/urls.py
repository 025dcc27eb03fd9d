from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import OrderViewSet
from .views_butcher import (
    ButcherOrderQueueView,
    ButcherLineQueueView,
    ButcherLineStateView,
    ButcherOrderStateView,
)
from .views_gym import GymOrderListView, GymOrderStateView

router = DefaultRouter()
router.register(r'orders', OrderViewSet, basename='orders')

urlpatterns = [
    # Butcher prep room
    path('butcher/orders/', ButcherOrderQueueView.as_view(), name='butcher-orders'),
    path('butcher/orders/<uuid:pk>/state/', ButcherOrderStateView.as_view(), name='butcher-order-state'),
    path('butcher/lines/', ButcherLineQueueView.as_view(), name='butcher-lines'),
    path('butcher/lines/<uuid:pk>/state/', ButcherLineStateView.as_view(), name='butcher-line-state'),

    # Gym receiving
    path('gym/orders/', GymOrderListView.as_view(), name='gym-orders'),
    path('gym/orders/<uuid:pk>/state/', GymOrderStateView.as_view(), name='gym-order-state'),

    path('', include(router.urls)),
]
