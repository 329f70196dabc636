from rest_framework import generics, status
from rest_framework.response import Response

from clinic_backend.core.permissions import request_identity

from .exceptions import ReminderDeliveryFailed
from .permissions import (
	AppointmentPermission,
	CalendarPermission,
	ReminderCandidatesPermission,
	ReminderSentPermission,
)
from .serializers import (
	AppointmentCreateSerializer,
	AppointmentListQuerySerializer,
	AppointmentSerializer,
	AppointmentUpdateSerializer,
	CalendarEventSerializer,
	CalendarQuerySerializer,
	ReminderQuerySerializer,
)
from .services.scheduling import AppointmentScheduler
from .tasks import deliver_reminder


class AppointmentListCreateView(generics.ListCreateAPIView):
	"""
	List appointments (filters: doctor_id, patient_id, date, status) or book one.

	POST goes through the scheduler, which validates the interval, checks that
	patient and doctor exist and rejects overlapping bookings with 409.
	"""
	permission_classes = [AppointmentPermission]
	serializer_class = AppointmentSerializer

	def get_queryset(self):
		query = AppointmentListQuerySerializer(data=self.request.query_params)
		query.is_valid(raise_exception=True)
		filters = query.validated_data
		return AppointmentScheduler().list(
			request_identity(self.request),
			doctor_id=filters.get('doctor_id'),
			patient_id=filters.get('patient_id'),
			day=filters.get('date'),
			status=filters.get('status'),
		)

	def create(self, request, *args, **kwargs):
		write_serializer = AppointmentCreateSerializer(data=request.data)
		write_serializer.is_valid(raise_exception=True)
		data = write_serializer.validated_data

		appointment = AppointmentScheduler().create(
			request_identity(request),
			data['patient_id'],
			data['doctor_id'],
			data['start_time'],
			data['end_time'],
			notes=data.get('notes', ''),
		)
		read_serializer = AppointmentSerializer(appointment, context={'request': request})
		return Response(read_serializer.data, status=status.HTTP_201_CREATED)


class AppointmentDetailView(generics.GenericAPIView):
	"""GET one appointment, PUT/PATCH to move or re-status it, DELETE to cancel (soft)."""
	permission_classes = [AppointmentPermission]
	serializer_class = AppointmentSerializer

	def get(self, request, pk):
		appointment = AppointmentScheduler().get(request_identity(request), pk)
		return Response(AppointmentSerializer(appointment, context={'request': request}).data)

	def put(self, request, pk):
		write_serializer = AppointmentUpdateSerializer(data=request.data)
		write_serializer.is_valid(raise_exception=True)
		data = write_serializer.validated_data

		kwargs = {
			'start_time': data.get('start_time'),
			'end_time': data.get('end_time'),
			'status': data.get('status'),
		}
		if 'notes' in data:
			kwargs['notes'] = data['notes']

		appointment = AppointmentScheduler().update(request_identity(request), pk, **kwargs)
		return Response(AppointmentSerializer(appointment, context={'request': request}).data)

	def patch(self, request, pk):
		return self.put(request, pk)

	def delete(self, request, pk):
		appointment = AppointmentScheduler().cancel(request_identity(request), pk)
		return Response(AppointmentSerializer(appointment, context={'request': request}).data)


class AppointmentCalendarView(generics.GenericAPIView):
	"""GET /api/appointments/calendar/?start=&end=&doctor_id="""
	permission_classes = [CalendarPermission]
	serializer_class = CalendarEventSerializer

	def get(self, request):
		query = CalendarQuerySerializer(data=request.query_params)
		query.is_valid(raise_exception=True)
		params = query.validated_data

		events = AppointmentScheduler().list_for_calendar(
			request_identity(request),
			params['start'],
			params['end'],
			doctor_id=params.get('doctor_id'),
		)
		return Response(CalendarEventSerializer(events, many=True).data)


class ReminderCandidatesView(generics.GenericAPIView):
	"""GET /api/appointments/reminders/?now= - what the next sweep would remind."""
	permission_classes = [ReminderCandidatesPermission]
	serializer_class = AppointmentSerializer

	def get(self, request):
		query = ReminderQuerySerializer(data=request.query_params)
		query.is_valid(raise_exception=True)
		now = query.validated_data.get('now')

		scheduler = AppointmentScheduler()
		window_start, window_end = scheduler.reminder_window(now)
		candidates = scheduler.reminder_candidates(now)
		return Response({
			'window_start': window_start,
			'window_end': window_end,
			'results': AppointmentSerializer(candidates, many=True, context={'request': request}).data,
		})


class ReminderSentView(generics.GenericAPIView):
	"""POST /api/appointments/<pk>/reminder-sent/ - confirm a delivered reminder."""
	permission_classes = [ReminderSentPermission]
	serializer_class = AppointmentSerializer

	def post(self, request, pk):
		flipped = AppointmentScheduler().mark_reminder_sent(pk, identity=request_identity(request))
		return Response({'id': pk, 'reminder_sent': True, 'changed': flipped})


class ReminderSendView(generics.GenericAPIView):
	"""POST /api/appointments/<pk>/reminder/ - email the patient now, then mark it sent."""
	permission_classes = [ReminderSentPermission]
	serializer_class = AppointmentSerializer

	def post(self, request, pk):
		scheduler = AppointmentScheduler()
		appointment = scheduler.reminder_target(request_identity(request), pk)
		if not deliver_reminder(appointment):
			raise ReminderDeliveryFailed()

		flipped = scheduler.mark_reminder_sent(appointment.pk)
		return Response({'id': appointment.pk, 'reminder_sent': True, 'changed': flipped})
