"""Appointments App URLs.

Prefix: /api/
Routes:
    GET/POST          /api/appointments/                     - List/Book appointments
    GET               /api/appointments/calendar/            - Calendar events in a range
    GET               /api/appointments/reminders/           - Reminder candidates (admin)
    GET/PUT/PATCH/DEL /api/appointments/<pk>/                - Retrieve/Update/Cancel
    POST              /api/appointments/<pk>/reminder/       - Email a reminder now
    POST              /api/appointments/<pk>/reminder-sent/  - Confirm reminder delivery
"""

from django.urls import path

from clinic_backend.appointments.views import (
	AppointmentCalendarView,
	AppointmentDetailView,
	AppointmentListCreateView,
	ReminderCandidatesView,
	ReminderSendView,
	ReminderSentView,
)

app_name = 'appointments'

urlpatterns = [
	path('appointments/', AppointmentListCreateView.as_view(), name='list'),
	path('appointments/calendar/', AppointmentCalendarView.as_view(), name='calendar'),
	path('appointments/reminders/', ReminderCandidatesView.as_view(), name='reminders'),
	path('appointments/<int:pk>/', AppointmentDetailView.as_view(), name='detail'),
	path('appointments/<int:pk>/reminder/', ReminderSendView.as_view(), name='reminder_send'),
	path('appointments/<int:pk>/reminder-sent/', ReminderSentView.as_view(), name='reminder_sent'),
]
