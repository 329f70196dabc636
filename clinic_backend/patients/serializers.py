from rest_framework import serializers

from clinic_backend.patients.models import Patient, PatientFile


class PatientReadSerializer(serializers.ModelSerializer):
    """Read-only serializer with all fields."""

    class Meta:
        model = Patient
        fields = [
            'id',
            'name',
            'age',
            'gender',
            'contact',
            'email',
            'address',
            'medical_history',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class PatientWriteSerializer(serializers.ModelSerializer):
    """Write serializer for create/update; persistence goes through PatientService."""

    class Meta:
        model = Patient
        fields = [
            'name',
            'age',
            'gender',
            'contact',
            'email',
            'address',
            'medical_history',
        ]

    def validate_name(self, value):
        value = (value or '').strip()
        if len(value) < 2:
            raise serializers.ValidationError('Name must be at least 2 characters.')
        return value

    def validate_contact(self, value):
        value = (value or '').strip()
        if not value:
            raise serializers.ValidationError('Contact number is required.')
        return value


class PatientFileSerializer(serializers.ModelSerializer):
    uploaded_by = serializers.CharField(source='uploaded_by.username', read_only=True, default=None)

    class Meta:
        model = PatientFile
        fields = [
            'id',
            'patient_id',
            'file_name',
            'file_type',
            'mime_type',
            'file_size',
            'storage_key',
            'uploaded_by',
            'created_at',
        ]
        read_only_fields = fields


class PatientFileCreateSerializer(serializers.Serializer):
    """Metadata of an object already uploaded to storage; the bytes never reach the API."""

    file_name = serializers.CharField(max_length=255)
    file_type = serializers.ChoiceField(choices=PatientFile.FILE_TYPE_CHOICES, default=PatientFile.TYPE_OTHER)
    mime_type = serializers.CharField(max_length=100)
    file_size = serializers.IntegerField(min_value=0)
    storage_key = serializers.CharField(max_length=500, required=False, allow_blank=True)
