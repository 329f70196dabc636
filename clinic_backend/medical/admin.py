from django.contrib import admin

from .models import Treatment


@admin.register(Treatment)
class TreatmentAdmin(admin.ModelAdmin):
    list_display = ("id", "treatment_date", "patient", "doctor", "treatment_type", "cost")
    list_filter = ("treatment_type", "doctor")
    search_fields = ("treatment_type", "patient__name", "disease")
    ordering = ("-treatment_date", "-id")
    date_hierarchy = "treatment_date"
    raw_id_fields = ("patient", "doctor", "appointment")
