"""Medical App URLs - Treatments.

Prefix: /api/
Routes:
    GET/POST          /api/treatments/       - List/Create treatments
    GET/PUT/PATCH/DEL /api/treatments/<pk>/  - Retrieve/Update/Delete (admin)
"""

from django.urls import path

from clinic_backend.medical.views import (
    TreatmentDetailView,
    TreatmentListCreateView,
)

app_name = 'medical'

urlpatterns = [
    path('treatments/', TreatmentListCreateView.as_view(), name='treatments_list'),
    path('treatments/<int:pk>/', TreatmentDetailView.as_view(), name='treatments_detail'),
]
