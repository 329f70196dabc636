from rest_framework import serializers

from clinic_backend.core.serializers import PractitionerSerializer

from .models import Appointment


class AppointmentSerializer(serializers.ModelSerializer):
    doctor = PractitionerSerializer(read_only=True)
    patient_name = serializers.CharField(source='patient.name', read_only=True)

    class Meta:
        model = Appointment
        fields = [
            'id',
            'patient_id',
            'patient_name',
            'doctor',
            'start_time',
            'end_time',
            'status',
            'notes',
            'reminder_sent',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class AppointmentCreateSerializer(serializers.Serializer):
    """Input shape only; existence, ownership and conflicts are checked by the scheduler."""

    patient_id = serializers.IntegerField(min_value=1)
    doctor_id = serializers.IntegerField(min_value=1)
    start_time = serializers.DateTimeField()
    end_time = serializers.DateTimeField()
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class AppointmentUpdateSerializer(serializers.Serializer):
    start_time = serializers.DateTimeField(required=False)
    end_time = serializers.DateTimeField(required=False)
    status = serializers.ChoiceField(choices=Appointment.STATUS_CHOICES, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)


class CalendarQuerySerializer(serializers.Serializer):
    start = serializers.DateTimeField()
    end = serializers.DateTimeField()
    doctor_id = serializers.IntegerField(min_value=1, required=False)

    def validate(self, attrs):
        if attrs['end'] < attrs['start']:
            raise serializers.ValidationError({'end': 'end must not be before start.'})
        return attrs


class AppointmentListQuerySerializer(serializers.Serializer):
    doctor_id = serializers.IntegerField(min_value=1, required=False)
    patient_id = serializers.IntegerField(min_value=1, required=False)
    date = serializers.DateField(required=False)
    status = serializers.ChoiceField(choices=Appointment.STATUS_CHOICES, required=False)


class CalendarEventSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    title = serializers.CharField()
    start = serializers.DateTimeField()
    end = serializers.DateTimeField()
    doctor_id = serializers.IntegerField()
    doctor_name = serializers.CharField()
    doctor_color = serializers.CharField(allow_blank=True)
    patient_id = serializers.IntegerField()
    status = serializers.CharField()
    notes = serializers.CharField(allow_blank=True)


class ReminderQuerySerializer(serializers.Serializer):
    now = serializers.DateTimeField(required=False)
