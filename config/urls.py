from django.contrib import admin
from django.urls import path, include
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView
from django.conf import settings

admin_url = settings.ADMIN_URL.strip("/") + "/"

urlpatterns = [
    path(admin_url, admin.site.urls),

    # --- APIs ---
    path('api/v1/accounts/', include('apps.accounts.urls')),
    path('api/v1/gyms/', include('apps.gyms.urls')),
    path('api/v1/', include('apps.orders.urls')),
    path('api/v1/', include('apps.settlements.urls')),
    path('api/v1/utils/', include('apps.utils.urls')),

    # --- Schema ---
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
]
