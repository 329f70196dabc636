"""Clinical records: treatments performed on patients.

Invoices never read ``Treatment.cost`` after creation; they copy it into
``billing.InvoiceItem`` so later edits here do not change billed amounts.
"""

from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models


class Treatment(models.Model):
    """A treatment a practitioner performed on a patient."""

    patient = models.ForeignKey(
        'patients.Patient',
        on_delete=models.PROTECT,
        related_name='treatments',
    )
    doctor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='treatments',
    )
    appointment = models.ForeignKey(
        'appointments.Appointment',
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name='treatments',
    )
    treatment_type = models.CharField(max_length=200, db_index=True)
    description = models.TextField(blank=True, default='')
    disease = models.CharField(max_length=200, blank=True, default='')
    cost = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))],
    )
    treatment_date = models.DateTimeField(db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'medical_treatment'
        ordering = ['-treatment_date', '-id']
        verbose_name = 'Treatment'
        verbose_name_plural = 'Treatments'
        constraints = [
            models.CheckConstraint(
                condition=models.Q(cost__gte=0),
                name='treatment_cost_non_negative',
            ),
        ]

    def __str__(self) -> str:
        return f"{self.treatment_type} (patient_id={self.patient_id}, cost={self.cost})"
