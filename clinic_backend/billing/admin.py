from django.contrib import admin

from .models import Invoice, InvoiceItem, InvoiceSequence


class InvoiceItemInline(admin.TabularInline):
    model = InvoiceItem
    extra = 0
    fields = ("treatment", "doctor", "treatment_type", "cost")
    readonly_fields = fields
    can_delete = False


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    """Amounts and numbers are written by BillingService only."""

    list_display = ("invoice_number", "patient", "total_amount", "paid_amount", "status", "issue_date")
    list_filter = ("issue_date",)
    search_fields = ("invoice_number", "patient__name")
    ordering = ("-issue_date", "-id")
    readonly_fields = (
        "invoice_number", "patient", "total_amount", "paid_amount", "status",
        "issue_date", "cancelled_at", "created_at", "updated_at",
    )
    fields = readonly_fields[:5] + ("due_date", "notes") + readonly_fields[5:]
    inlines = [InvoiceItemInline]

    def has_add_permission(self, request):
        return False


@admin.register(InvoiceSequence)
class InvoiceSequenceAdmin(admin.ModelAdmin):
    list_display = ("day", "last_value")
    ordering = ("-day",)
    readonly_fields = ("day", "last_value")

    def has_add_permission(self, request):
        return False
