from django.urls import path
from .views import GymSettlementView, ButcherSettlementView

urlpatterns = [
    path('gym/settlements/', GymSettlementView.as_view(), name='gym-settlements'),
    path('butcher/settlements/', ButcherSettlementView.as_view(), name='butcher-settlements'),
]
