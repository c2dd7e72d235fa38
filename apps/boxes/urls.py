from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'boxes'

# Router for ViewSets
router = DefaultRouter()
# Invoices first so 'invoices/' is not read as a box id
router.register(r'invoices', views.InvoiceViewSet, basename='invoice')
router.register(r'', views.FinancialBoxViewSet, basename='box')

urlpatterns = [
    # Box ViewSet routes
    # GET    /api/boxes/                    - List boxes (?status=)
    # POST   /api/boxes/                    - Open box
    # GET    /api/boxes/{id}/               - Box details
    # PATCH  /api/boxes/{id}/               - Update name / description / crew count
    # DELETE /api/boxes/{id}/               - Delete box and invoices
    # POST   /api/boxes/{id}/status/        - Set status
    # GET    /api/boxes/{id}/invoices/      - Invoices of the box
    # GET    /api/boxes/owner-balance/      - Sum of box totals

    # Invoice ViewSet routes
    # GET    /api/boxes/invoices/               - List invoices (?box=, ?date_from=, ?date_to=)
    # POST   /api/boxes/invoices/               - Add invoice (box total += amount)
    # GET    /api/boxes/invoices/{id}/          - Invoice details
    # PATCH  /api/boxes/invoices/{id}/          - Edit invoice (box total += delta)
    # DELETE /api/boxes/invoices/{id}/          - Delete invoice (box total -= amount)
    # POST   /api/boxes/invoices/{id}/mark_paid/ - Mark paid / unpaid
    # GET    /api/boxes/invoices/stats/         - Invoice statistics (?box=)

    # Include router URLs
    path('', include(router.urls)),
]
