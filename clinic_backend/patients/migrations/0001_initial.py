import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

	initial = True

	dependencies = [
		migrations.swappable_dependency(settings.AUTH_USER_MODEL),
	]

	operations = [
		migrations.CreateModel(
			name="Patient",
			fields=[
				("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
				("name", models.CharField(db_index=True, max_length=200)),
				("age", models.PositiveSmallIntegerField(blank=True, null=True, validators=[django.core.validators.MaxValueValidator(150)])),
				("gender", models.CharField(blank=True, choices=[("male", "Male"), ("female", "Female"), ("other", "Other")], max_length=10)),
				("contact", models.CharField(db_index=True, max_length=50)),
				("email", models.EmailField(blank=True, max_length=254)),
				("address", models.CharField(blank=True, max_length=255)),
				("medical_history", models.TextField(blank=True)),
				("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
				("updated_at", models.DateTimeField(auto_now=True)),
			],
			options={
				"verbose_name": "Patient",
				"verbose_name_plural": "Patients",
				"db_table": "patients_patient",
				"ordering": ["-created_at", "-id"],
			},
		),
		migrations.CreateModel(
			name="PatientFile",
			fields=[
				("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
				("file_name", models.CharField(max_length=255)),
				("file_type", models.CharField(choices=[("prescription", "Prescription"), ("scan", "Scan"), ("report", "Report"), ("other", "Other")], default="other", max_length=20)),
				("mime_type", models.CharField(max_length=100)),
				("file_size", models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(0), django.core.validators.MaxValueValidator(10485760)])),
				("storage_key", models.CharField(max_length=500, unique=True)),
				("created_at", models.DateTimeField(auto_now_add=True)),
				("patient", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="files", to="patients.patient")),
				("uploaded_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="uploaded_files", to=settings.AUTH_USER_MODEL)),
			],
			options={
				"verbose_name": "Patient file",
				"verbose_name_plural": "Patient files",
				"db_table": "patients_file",
				"ordering": ["-created_at", "-id"],
			},
		),
	]
