import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

	initial = True

	dependencies = [
		("patients", "0001_initial"),
		migrations.swappable_dependency(settings.AUTH_USER_MODEL),
	]

	operations = [
		migrations.CreateModel(
			name="Appointment",
			fields=[
				("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
				("start_time", models.DateTimeField()),
				("end_time", models.DateTimeField()),
				("status", models.CharField(choices=[("scheduled", "scheduled"), ("completed", "completed"), ("cancelled", "cancelled"), ("rescheduled", "rescheduled")], db_index=True, default="scheduled", max_length=20)),
				("notes", models.TextField(blank=True, default="")),
				("reminder_sent", models.BooleanField(default=False)),
				("created_at", models.DateTimeField(auto_now_add=True)),
				("updated_at", models.DateTimeField(auto_now=True)),
				("doctor", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="appointments", to=settings.AUTH_USER_MODEL)),
				("patient", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="appointments", to="patients.patient")),
			],
			options={
				"db_table": "appointments_appointment",
				"ordering": ["start_time", "id"],
				"indexes": [
					models.Index(fields=["doctor", "start_time"], name="appt_doctor_start_idx"),
					models.Index(fields=["start_time"], name="appt_start_idx"),
				],
				"constraints": [
					models.CheckConstraint(condition=models.Q(end_time__gt=models.F("start_time")), name="appt_end_after_start"),
				],
			},
		),
	]
