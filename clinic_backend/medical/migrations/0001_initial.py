import django.core.validators
import django.db.models.deletion
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

	initial = True

	dependencies = [
		("appointments", "0001_initial"),
		("patients", "0001_initial"),
		migrations.swappable_dependency(settings.AUTH_USER_MODEL),
	]

	operations = [
		migrations.CreateModel(
			name="Treatment",
			fields=[
				("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
				("treatment_type", models.CharField(db_index=True, max_length=200)),
				("description", models.TextField(blank=True, default="")),
				("disease", models.CharField(blank=True, default="", max_length=200)),
				("cost", models.DecimalField(decimal_places=2, max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal("0.00"))])),
				("treatment_date", models.DateTimeField(db_index=True)),
				("created_at", models.DateTimeField(auto_now_add=True)),
				("updated_at", models.DateTimeField(auto_now=True)),
				("appointment", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="treatments", to="appointments.appointment")),
				("doctor", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="treatments", to=settings.AUTH_USER_MODEL)),
				("patient", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="treatments", to="patients.patient")),
			],
			options={
				"verbose_name": "Treatment",
				"verbose_name_plural": "Treatments",
				"db_table": "medical_treatment",
				"ordering": ["-treatment_date", "-id"],
				"constraints": [
					models.CheckConstraint(condition=models.Q(cost__gte=0), name="treatment_cost_non_negative"),
				],
			},
		),
	]
