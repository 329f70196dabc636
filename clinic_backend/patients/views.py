from rest_framework import generics, status
from rest_framework.response import Response

from clinic_backend.appointments.serializers import AppointmentSerializer
from clinic_backend.appointments.services.scheduling import AppointmentScheduler
from clinic_backend.billing.serializers import InvoiceSerializer
from clinic_backend.billing.services.billing import BillingService
from clinic_backend.core.permissions import request_identity
from clinic_backend.core.utils import log_patient_action
from clinic_backend.medical.serializers import TreatmentSerializer
from clinic_backend.medical.services import TreatmentService
from clinic_backend.patients.permissions import (
    PatientFilePermission,
    PatientPermission,
    PatientRelatedPermission,
)
from clinic_backend.patients.serializers import (
    PatientFileCreateSerializer,
    PatientFileSerializer,
    PatientReadSerializer,
    PatientWriteSerializer,
)
from clinic_backend.patients.services import PatientService


class PatientListCreateView(generics.ListCreateAPIView):
    """List patients visible to the caller (``?search=``) or create one."""

    permission_classes = [PatientPermission]

    def get_queryset(self):
        search = (self.request.query_params.get('search') or '').strip()
        return PatientService().list(request_identity(self.request), search=search or None)

    def get_serializer_class(self):
        if self.request.method == 'POST':
            return PatientWriteSerializer
        return PatientReadSerializer

    def create(self, request, *args, **kwargs):
        write_serializer = PatientWriteSerializer(data=request.data)
        write_serializer.is_valid(raise_exception=True)
        patient = PatientService().create(request_identity(request), **write_serializer.validated_data)
        return Response(PatientReadSerializer(patient).data, status=status.HTTP_201_CREATED)


class PatientDetailView(generics.GenericAPIView):
    """Retrieve, update or delete (admin, cascading) a patient."""

    permission_classes = [PatientPermission]
    serializer_class = PatientReadSerializer

    def get(self, request, pk):
        identity = request_identity(request)
        patient = PatientService().get(identity, pk)
        log_patient_action(identity, 'patient_view', patient_id=patient.pk)
        return Response(PatientReadSerializer(patient).data)

    def put(self, request, pk, partial=False):
        identity = request_identity(request)
        service = PatientService()
        patient = service.get(identity, pk)

        write_serializer = PatientWriteSerializer(patient, data=request.data, partial=partial)
        write_serializer.is_valid(raise_exception=True)
        patient = service.update(identity, pk, **write_serializer.validated_data)
        return Response(PatientReadSerializer(patient).data)

    def patch(self, request, pk):
        return self.put(request, pk, partial=True)

    def delete(self, request, pk):
        PatientService().delete(request_identity(request), pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


class _PatientSubListView(generics.ListAPIView):
    """Base for ``/api/patients/<pk>/<relation>/``: resolves the patient in scope first."""

    permission_classes = [PatientRelatedPermission]

    def get_patient(self):
        return PatientService().get(request_identity(self.request), self.kwargs['pk'])


class PatientAppointmentsView(_PatientSubListView):
    serializer_class = AppointmentSerializer

    def get_queryset(self):
        patient = self.get_patient()
        return AppointmentScheduler().list(request_identity(self.request), patient_id=patient.pk)


class PatientTreatmentsView(_PatientSubListView):
    serializer_class = TreatmentSerializer

    def get_queryset(self):
        patient = self.get_patient()
        return TreatmentService().list(request_identity(self.request), patient_id=patient.pk)


class PatientInvoicesView(_PatientSubListView):
    serializer_class = InvoiceSerializer

    def get_queryset(self):
        patient = self.get_patient()
        return BillingService().list(request_identity(self.request), patient_id=patient.pk)


class PatientFilesView(generics.ListCreateAPIView):
    """List a patient's file metadata or record a new upload."""

    permission_classes = [PatientFilePermission]
    serializer_class = PatientFileSerializer

    def get_queryset(self):
        return PatientService().files(request_identity(self.request), self.kwargs['pk'])

    def create(self, request, *args, **kwargs):
        write_serializer = PatientFileCreateSerializer(data=request.data)
        write_serializer.is_valid(raise_exception=True)
        data = dict(write_serializer.validated_data)
        data['storage_key'] = data.get('storage_key') or None

        record = PatientService().add_file(request_identity(request), self.kwargs['pk'], **data)
        return Response(PatientFileSerializer(record).data, status=status.HTTP_201_CREATED)


class PatientFileDetailView(generics.GenericAPIView):
    permission_classes = [PatientFilePermission]
    serializer_class = PatientFileSerializer

    def delete(self, request, pk, file_pk):
        PatientService().delete_file(request_identity(request), pk, file_pk)
        return Response(status=status.HTTP_204_NO_CONTENT)
