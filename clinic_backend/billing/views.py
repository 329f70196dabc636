"""Invoice endpoints.

Views stay thin: they parse input, call ``BillingService`` with the caller's
identity and serialize the result. Domain errors propagate to
``clinic_exception_handler``.
"""

from django.db import transaction

from rest_framework import generics, status
from rest_framework.response import Response

from clinic_backend.billing.permissions import InvoiceCancelPermission, InvoicePermission
from clinic_backend.billing.serializers import (
	InvoiceCreateSerializer,
	InvoiceListQuerySerializer,
	InvoicePaymentSerializer,
	InvoiceSerializer,
)
from clinic_backend.billing.services.billing import BillingService
from clinic_backend.billing.tasks import send_invoice_notification
from clinic_backend.core.permissions import request_identity


class _InvoiceServiceMixin:
	def get_service(self) -> BillingService:
		return BillingService()


class InvoiceListCreateView(_InvoiceServiceMixin, generics.ListCreateAPIView):
	"""GET: list invoices (filters: patient_id, status). POST: create from treatments."""
	permission_classes = [InvoicePermission]
	serializer_class = InvoiceSerializer

	def get_queryset(self):
		query = InvoiceListQuerySerializer(data=self.request.query_params)
		query.is_valid(raise_exception=True)
		filters = query.validated_data
		return self.get_service().list(
			request_identity(self.request),
			patient_id=filters.get('patient_id'),
			status=filters.get('status'),
		)

	def create(self, request, *args, **kwargs):
		write_serializer = InvoiceCreateSerializer(data=request.data)
		write_serializer.is_valid(raise_exception=True)
		data = write_serializer.validated_data

		invoice = self.get_service().create(
			request_identity(request),
			data['patient_id'],
			data['treatment_ids'],
			due_date=data.get('due_date'),
			notes=data.get('notes'),
		)
		invoice_id = invoice.pk
		transaction.on_commit(lambda: send_invoice_notification.delay(invoice_id))

		read_serializer = InvoiceSerializer(invoice, context={'request': request})
		return Response(read_serializer.data, status=status.HTTP_201_CREATED)


class InvoiceDetailView(_InvoiceServiceMixin, generics.GenericAPIView):
	"""GET one invoice, PUT/PATCH a payment or notes, DELETE (admin)."""
	permission_classes = [InvoicePermission]
	serializer_class = InvoiceSerializer

	def get(self, request, pk):
		invoice = self.get_service().get(request_identity(request), pk)
		return Response(InvoiceSerializer(invoice, context={'request': request}).data)

	def put(self, request, pk):
		write_serializer = InvoicePaymentSerializer(data=request.data)
		write_serializer.is_valid(raise_exception=True)
		data = write_serializer.validated_data

		invoice = self.get_service().record_payment(
			request_identity(request),
			pk,
			paid_amount=data.get('paid_amount'),
			notes=data.get('notes'),
		)
		return Response(InvoiceSerializer(invoice, context={'request': request}).data)

	def patch(self, request, pk):
		return self.put(request, pk)

	def delete(self, request, pk):
		self.get_service().delete(request_identity(request), pk)
		return Response(status=status.HTTP_204_NO_CONTENT)


class InvoiceCancelView(_InvoiceServiceMixin, generics.GenericAPIView):
	permission_classes = [InvoiceCancelPermission]
	serializer_class = InvoiceSerializer

	def post(self, request, pk):
		invoice = self.get_service().cancel(request_identity(request), pk)
		return Response(InvoiceSerializer(invoice, context={'request': request}).data)
