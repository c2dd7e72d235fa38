"""
Root URL configuration: every endpoint lives under /api/.
"""
from django.contrib import admin
from django.urls import path, include
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView
from rest_framework_simplejwt.views import TokenRefreshView

from config.views import health_check

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/health/', health_check, name='health-check'),

    # OpenAPI schema and Swagger UI
    path('api/schema/', SpectacularAPIView.as_view(), name='api-schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='api-schema'), name='api-docs'),

    # Operators
    path('api/auth/', include('apps.accounts.urls')),
    path('api/auth/token/refresh/', TokenRefreshView.as_view(), name='token-refresh'),

    # Ledger
    path('api/crew/', include('apps.crew.urls')),
    path('api/boxes/', include('apps.boxes.urls')),
    path('api/distribution/', include('apps.distribution.urls')),
]

handler404 = 'config.views.error_404'
handler500 = 'config.views.error_500'
