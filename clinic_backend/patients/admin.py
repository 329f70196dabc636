"""
Patients admin. Deleting a patient cascades through appointments,
treatments and invoices, which only PatientService.delete does, so the admin
cannot delete patients.
"""

from django.contrib import admin
from django.utils.html import format_html

from clinic_backend.patients.models import Patient, PatientFile


class PatientFileInline(admin.TabularInline):
    model = PatientFile
    extra = 0
    fields = ("file_name", "file_type", "mime_type", "file_size", "storage_key", "uploaded_by", "created_at")
    readonly_fields = ("created_at",)


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ("id", "name_display", "age", "gender", "contact", "email", "created_at")
    list_filter = ("gender", "created_at")
    search_fields = ("name", "contact", "email")
    ordering = ("-created_at",)
    list_per_page = 50

    readonly_fields = ("id", "created_at", "updated_at")
    inlines = [PatientFileInline]

    fieldsets = (
        ("Patient", {"fields": ("name", "age", "gender")}),
        ("Contact", {"fields": ("contact", "email", "address")}),
        ("Clinical", {"fields": ("medical_history",)}),
        ("System", {"fields": ("id", "created_at", "updated_at"), "classes": ("collapse",)}),
    )

    def has_delete_permission(self, request, obj=None):
        return False

    def name_display(self, obj):
        return format_html('<strong style="color: #1A73E8;">{}</strong>', obj.name)
    name_display.short_description = "Name"
