from rest_framework import generics, status
from rest_framework.response import Response

from clinic_backend.core.permissions import request_identity

from .permissions import TreatmentPermission
from .serializers import (
    TreatmentListQuerySerializer,
    TreatmentSerializer,
    TreatmentUpdateSerializer,
    TreatmentWriteSerializer,
)
from .services import TreatmentService


class TreatmentListCreateView(generics.ListCreateAPIView):
    """
    List treatments (filters: patient_id, doctor_id, treatment_type) or record one.

    Dentists only see their own treatments; receptionists are refused.
    """
    permission_classes = [TreatmentPermission]
    serializer_class = TreatmentSerializer

    def get_queryset(self):
        query = TreatmentListQuerySerializer(data=self.request.query_params)
        query.is_valid(raise_exception=True)
        filters = query.validated_data
        return TreatmentService().list(
            request_identity(self.request),
            patient_id=filters.get('patient_id'),
            doctor_id=filters.get('doctor_id'),
            treatment_type=filters.get('treatment_type') or None,
        )

    def create(self, request, *args, **kwargs):
        write_serializer = TreatmentWriteSerializer(data=request.data)
        write_serializer.is_valid(raise_exception=True)

        treatment = TreatmentService().create(request_identity(request), **write_serializer.validated_data)
        read_serializer = TreatmentSerializer(treatment, context={'request': request})
        return Response(read_serializer.data, status=status.HTTP_201_CREATED)


class TreatmentDetailView(generics.GenericAPIView):
    permission_classes = [TreatmentPermission]
    serializer_class = TreatmentSerializer

    def get(self, request, pk):
        treatment = TreatmentService().get(request_identity(request), pk)
        return Response(TreatmentSerializer(treatment, context={'request': request}).data)

    def put(self, request, pk):
        write_serializer = TreatmentUpdateSerializer(data=request.data, partial=True)
        write_serializer.is_valid(raise_exception=True)

        treatment = TreatmentService().update(request_identity(request), pk, **write_serializer.validated_data)
        return Response(TreatmentSerializer(treatment, context={'request': request}).data)

    def patch(self, request, pk):
        return self.put(request, pk)

    def delete(self, request, pk):
        TreatmentService().delete(request_identity(request), pk)
        return Response(status=status.HTTP_204_NO_CONTENT)
