"""
Clinic admin registrations for users, roles and the audit log.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin
from django.utils.html import format_html
from django.utils.safestring import mark_safe

from .models import AuditLog, Role, User


ROLE_COLORS = {
    Role.ADMIN: "#EA4335",
    Role.DENTIST: "#1A73E8",
    Role.RECEPTIONIST: "#FBBC05",
}

admin.site.site_header = "Clinic back office"
admin.site.site_title = "Clinic admin"


@admin.register(Role)
class RoleAdmin(admin.ModelAdmin):
    list_display = ("name", "label", "user_count")
    search_fields = ("name", "label")
    ordering = ("name",)

    def user_count(self, obj):
        return obj.users.count()
    user_count.short_description = "Users"


@admin.register(User)
class UserAdmin(DjangoUserAdmin):
    """User admin with role badge."""

    list_display = ("username", "email", "role_badge", "is_active", "last_login")
    list_filter = ("role", "is_staff", "is_active", "is_superuser")
    search_fields = ("username", "email", "first_name", "last_name")
    ordering = ("username",)

    fieldsets = (
        ("Authentication", {"fields": ("username", "password")}),
        ("Personal data", {"fields": ("first_name", "last_name", "email", "role", "calendar_color")}),
        ("Permissions", {
            "fields": ("is_active", "is_staff", "is_superuser", "groups", "user_permissions"),
            "classes": ("collapse",),
        }),
        ("Timestamps", {"fields": ("last_login", "date_joined"), "classes": ("collapse",)}),
    )
    add_fieldsets = (
        ("New user", {
            "classes": ("wide",),
            "fields": ("username", "password1", "password2", "email", "role", "first_name", "last_name"),
        }),
    )
    readonly_fields = ("last_login", "date_joined")

    def role_badge(self, obj):
        if not obj.role:
            return mark_safe('<span style="color: #9AA0A6; font-style: italic;">no role</span>')
        return format_html(
            '<span style="background-color: {}; color: white; padding: 2px 8px; border-radius: 4px;">{}</span>',
            ROLE_COLORS.get(obj.role.name, "#5F6368"), obj.role.name,
        )
    role_badge.short_description = "Role"


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    """Audit log entries are read-only."""

    list_display = ("id", "timestamp", "user", "role_name", "action", "patient_id")
    list_filter = ("action", "role_name", "timestamp")
    search_fields = ("user__username", "action", "patient_id")
    ordering = ("-timestamp", "-id")
    date_hierarchy = "timestamp"
    readonly_fields = ("id", "user", "role_name", "action", "patient_id", "timestamp", "meta")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return request.user.is_superuser
