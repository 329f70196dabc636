"""Serializers for treatments."""

from decimal import Decimal

from rest_framework import serializers

from clinic_backend.core.serializers import PractitionerSerializer
from clinic_backend.medical.models import Treatment


class TreatmentSerializer(serializers.ModelSerializer):
    doctor = PractitionerSerializer(read_only=True)
    patient_name = serializers.CharField(source='patient.name', read_only=True)

    class Meta:
        model = Treatment
        fields = [
            'id',
            'patient_id',
            'patient_name',
            'doctor',
            'appointment_id',
            'treatment_type',
            'description',
            'disease',
            'cost',
            'treatment_date',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class TreatmentWriteSerializer(serializers.Serializer):
    """Input shape for create. ``doctor_id`` is ignored for dentists."""

    patient_id = serializers.IntegerField(min_value=1)
    doctor_id = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    appointment_id = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    treatment_type = serializers.CharField(max_length=200)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    disease = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')
    cost = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0.00'))
    treatment_date = serializers.DateTimeField()


class TreatmentUpdateSerializer(serializers.Serializer):
    treatment_type = serializers.CharField(max_length=200, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    disease = serializers.CharField(max_length=200, required=False, allow_blank=True)
    cost = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0.00'), required=False)
    treatment_date = serializers.DateTimeField(required=False)


class TreatmentListQuerySerializer(serializers.Serializer):
    patient_id = serializers.IntegerField(min_value=1, required=False)
    doctor_id = serializers.IntegerField(min_value=1, required=False)
    treatment_type = serializers.CharField(max_length=200, required=False, allow_blank=True)
