from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'distribution'

# Router for ViewSets
router = DefaultRouter()
router.register(r'cycles', views.DistributionCycleViewSet, basename='cycle')

urlpatterns = [
    # Preview
    # GET    /api/distribution/preview/?box=&crew_count=   - Compute split, nothing saved
    path('preview/', views.preview, name='preview'),

    # Cycle ViewSet routes
    # GET    /api/distribution/cycles/                          - List cycles (?box=, ?open=)
    # POST   /api/distribution/cycles/                          - Open cycle for a box
    # GET    /api/distribution/cycles/{id}/                     - Cycle with payments
    # POST   /api/distribution/cycles/{id}/deduct_debt/         - Deduct a member's debt
    # POST   /api/distribution/cycles/{id}/mark_pending/        - Select members for payment
    # POST   /api/distribution/cycles/{id}/confirm_payments/    - Confirm members paid
    # POST   /api/distribution/cycles/{id}/confirm_final/       - Close cycle, complete box

    # Include router URLs
    path('', include(router.urls)),
]
