import django.db.models.deletion
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

	initial = True

	dependencies = [
		("medical", "0001_initial"),
		("patients", "0001_initial"),
		migrations.swappable_dependency(settings.AUTH_USER_MODEL),
	]

	operations = [
		migrations.CreateModel(
			name="InvoiceSequence",
			fields=[
				("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
				("day", models.DateField(unique=True)),
				("last_value", models.PositiveIntegerField(default=0)),
			],
			options={
				"db_table": "billing_invoicesequence",
				"ordering": ["-day"],
			},
		),
		migrations.CreateModel(
			name="Invoice",
			fields=[
				("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
				("invoice_number", models.CharField(max_length=32, unique=True)),
				("total_amount", models.DecimalField(decimal_places=2, max_digits=10)),
				("paid_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10)),
				("issue_date", models.DateField(db_index=True)),
				("due_date", models.DateField(blank=True, null=True)),
				("notes", models.TextField(blank=True, default="")),
				("cancelled_at", models.DateTimeField(blank=True, null=True)),
				("created_at", models.DateTimeField(auto_now_add=True)),
				("updated_at", models.DateTimeField(auto_now=True)),
				("patient", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="invoices", to="patients.patient")),
			],
			options={
				"verbose_name": "Invoice",
				"verbose_name_plural": "Invoices",
				"db_table": "billing_invoice",
				"ordering": ["-issue_date", "-id"],
				"constraints": [
					models.CheckConstraint(condition=models.Q(paid_amount__gte=0), name="invoice_paid_non_negative"),
					models.CheckConstraint(condition=models.Q(paid_amount__lte=models.F("total_amount")), name="invoice_paid_within_total"),
				],
			},
		),
		migrations.CreateModel(
			name="InvoiceItem",
			fields=[
				("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
				("treatment_type", models.CharField(max_length=200)),
				("cost", models.DecimalField(decimal_places=2, max_digits=10)),
				("doctor", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="invoice_items", to=settings.AUTH_USER_MODEL)),
				("invoice", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="items", to="billing.invoice")),
				("treatment", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="invoice_items", to="medical.treatment")),
			],
			options={
				"verbose_name": "Invoice item",
				"verbose_name_plural": "Invoice items",
				"db_table": "billing_invoiceitem",
				"ordering": ["id"],
			},
		),
	]
