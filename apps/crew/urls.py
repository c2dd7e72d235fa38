from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'crew'

# Router for ViewSets
router = DefaultRouter()
router.register(r'', views.CrewMemberViewSet, basename='crew-member')

urlpatterns = [
    # Crew ViewSet routes
    # GET    /api/crew/              - List members (?active=true, ?role=)
    # POST   /api/crew/              - Add member
    # GET    /api/crew/{id}/         - Member with current debt
    # PUT    /api/crew/{id}/         - Update member
    # PATCH  /api/crew/{id}/         - Partial update
    # DELETE /api/crew/{id}/         - Delete member and ledger

    # Custom crew actions
    # GET    /api/crew/{id}/debts/   - Debt history
    # POST   /api/crew/{id}/debts/   - Add / subtract / set debt
    # GET    /api/crew/summary/      - Roster counts and total debt

    # Additional endpoints
    path('roster/', views.roster, name='roster'),
    path('debts/<uuid:entry_id>/', views.debt_entry_detail, name='debt-entry'),

    # Include router URLs
    path('', include(router.urls)),
]
