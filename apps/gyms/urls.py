from django.urls import path
from .views import GymListView, GymAdminListCreateView, GymAdminDetailView

urlpatterns = [
    path('', GymListView.as_view(), name='gyms'),
    path('<uuid:gym_pk>/admins/', GymAdminListCreateView.as_view(), name='gym-admins'),
    path('<uuid:gym_pk>/admins/<uuid:pk>/', GymAdminDetailView.as_view(), name='gym-admin-detail'),
]
