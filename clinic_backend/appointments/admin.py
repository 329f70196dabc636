"""
Appointments admin. Bookings are created and moved through the scheduler
API only, so only notes are editable here.
"""

from django.contrib import admin
from django.utils.html import format_html

from .models import Appointment


STATUS_COLORS = {
    Appointment.STATUS_SCHEDULED: "#1A73E8",
    Appointment.STATUS_RESCHEDULED: "#FBBC05",
    Appointment.STATUS_COMPLETED: "#34A853",
    Appointment.STATUS_CANCELLED: "#EA4335",
}


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ("id", "patient", "doctor", "time_display", "status_badge", "reminder_sent")
    list_filter = ("status", "doctor", "reminder_sent", "start_time")
    search_fields = ("patient__name", "doctor__username", "notes")
    ordering = ("-start_time",)
    date_hierarchy = "start_time"
    list_per_page = 50

    readonly_fields = ("id", "patient", "doctor", "start_time", "end_time", "status", "reminder_sent", "created_at", "updated_at")

    fieldsets = (
        ("Patient & doctor", {"fields": ("patient", "doctor")}),
        ("Slot", {"fields": ("start_time", "end_time", "status")}),
        ("Notes", {"fields": ("notes",), "classes": ("collapse",)}),
        ("System", {"fields": ("id", "reminder_sent", "created_at", "updated_at"), "classes": ("collapse",)}),
    )

    def has_add_permission(self, request):
        return False

    def time_display(self, obj):
        return f"{obj.start_time:%Y-%m-%d %H:%M} - {obj.end_time:%H:%M}"
    time_display.short_description = "Slot"

    def status_badge(self, obj):
        return format_html(
            '<span style="background-color: {}; color: white; padding: 2px 8px; border-radius: 4px;">{}</span>',
            STATUS_COLORS.get(obj.status, "#5F6368"), obj.status,
        )
    status_badge.short_description = "Status"
