"""Patients App URLs.

Prefix: /api/
Routes:
    GET/POST          /api/patients/                    - List/Create patients
    GET/PUT/PATCH/DEL /api/patients/<pk>/               - Retrieve/Update/Delete (admin)
    GET               /api/patients/<pk>/appointments/  - Patient's appointments (scoped)
    GET               /api/patients/<pk>/treatments/    - Patient's treatments (scoped)
    GET               /api/patients/<pk>/invoices/      - Patient's invoices (scoped)
    GET/POST          /api/patients/<pk>/files/         - Patient's file metadata / record an upload
    DELETE            /api/patients/<pk>/files/<fid>/   - Remove file metadata (admin or uploader)
"""

from django.urls import path

from clinic_backend.patients.views import (
    PatientAppointmentsView,
    PatientDetailView,
    PatientFileDetailView,
    PatientFilesView,
    PatientInvoicesView,
    PatientListCreateView,
    PatientTreatmentsView,
)

app_name = 'patients'

urlpatterns = [
    path('patients/', PatientListCreateView.as_view(), name='list'),
    path('patients/<int:pk>/', PatientDetailView.as_view(), name='detail'),
    path('patients/<int:pk>/appointments/', PatientAppointmentsView.as_view(), name='appointments'),
    path('patients/<int:pk>/treatments/', PatientTreatmentsView.as_view(), name='treatments'),
    path('patients/<int:pk>/invoices/', PatientInvoicesView.as_view(), name='invoices'),
    path('patients/<int:pk>/files/', PatientFilesView.as_view(), name='files'),
    path('patients/<int:pk>/files/<int:file_pk>/', PatientFileDetailView.as_view(), name='file_detail'),
]
