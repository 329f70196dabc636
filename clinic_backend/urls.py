"""Clinic back-office URL configuration.

API routes:
    /api/health/, /api/auth/, /api/users/, /api/practitioners/  - core
    /api/patients/            - patients
    /api/appointments/        - appointments
    /api/treatments/          - medical
    /api/invoices/            - billing
"""

from django.contrib import admin
from django.http import HttpResponse
from django.urls import include, path


def root(request):
    return HttpResponse("Clinic backend is running.")


urlpatterns = [
    path("", root, name="root"),
    path("admin/", admin.site.urls),

    path("api/", include("clinic_backend.core.urls")),
    path("api/", include("clinic_backend.patients.urls")),
    path("api/", include("clinic_backend.appointments.urls")),
    path("api/", include("clinic_backend.medical.urls")),
    path("api/", include("clinic_backend.billing.urls")),
]
