from django.urls import path
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from .views import MeView, ButcherAdminListCreateView, ButcherAdminDetailView

urlpatterns = [
    path('token/', TokenObtainPairView.as_view(), name='token-obtain'),
    path('token/refresh/', TokenRefreshView.as_view(), name='token-refresh'),
    path('me/', MeView.as_view(), name='user-me'),
    path('butcher-admins/', ButcherAdminListCreateView.as_view(), name='butcher-admins'),
    path('butcher-admins/<uuid:pk>/', ButcherAdminDetailView.as_view(), name='butcher-admin-detail'),
]
