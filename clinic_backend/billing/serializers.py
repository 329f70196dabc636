"""Serializers for invoices.

Read serializers expose the derived ``status`` and the formatted amounts.
Write serializers only shape input; business rules live in
``BillingService``.
"""

from decimal import Decimal

from rest_framework import serializers

from clinic_backend.billing.models import Invoice, InvoiceItem
from clinic_backend.billing.services import ledger


class InvoiceItemSerializer(serializers.ModelSerializer):
    doctor_name = serializers.SerializerMethodField()

    class Meta:
        model = InvoiceItem
        fields = ['id', 'treatment_id', 'treatment_type', 'doctor_id', 'doctor_name', 'cost']
        read_only_fields = fields

    def get_doctor_name(self, obj):
        return obj.doctor.display_name()


class InvoiceSerializer(serializers.ModelSerializer):
    status = serializers.CharField(read_only=True)
    patient_name = serializers.CharField(source='patient.name', read_only=True)
    balance_due = serializers.SerializerMethodField()
    items = InvoiceItemSerializer(many=True, read_only=True)

    class Meta:
        model = Invoice
        fields = [
            'id',
            'invoice_number',
            'patient_id',
            'patient_name',
            'items',
            'total_amount',
            'paid_amount',
            'balance_due',
            'status',
            'issue_date',
            'due_date',
            'notes',
            'cancelled_at',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_balance_due(self, obj):
        return str(ledger.balance_due(obj.paid_amount, obj.total_amount))


class InvoiceCreateSerializer(serializers.Serializer):
    patient_id = serializers.IntegerField(min_value=1)
    treatment_ids = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        allow_empty=True,
    )
    due_date = serializers.DateField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class InvoicePaymentSerializer(serializers.Serializer):
    """Payment update. ``status`` is not accepted; it follows from amounts."""

    paid_amount = serializers.DecimalField(
        max_digits=10,
        decimal_places=2,
        required=False,
        min_value=Decimal('0.00'),
    )
    notes = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs):
        if 'status' in self.initial_data:
            raise serializers.ValidationError({'status': 'Invoice status is derived and cannot be set.'})
        return attrs


class InvoiceListQuerySerializer(serializers.Serializer):
    patient_id = serializers.IntegerField(min_value=1, required=False)
    status = serializers.ChoiceField(choices=ledger.STATUSES, required=False)
