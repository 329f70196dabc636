from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


class Patient(models.Model):
    """Demographic and clinical summary record.

    Owned by the clinic as a whole. Dentists only see patients they have at
    least one appointment with (see ``clinic_backend.core.scope``).
    """

    GENDER_MALE = 'male'
    GENDER_FEMALE = 'female'
    GENDER_OTHER = 'other'

    GENDER_CHOICES = [
        (GENDER_MALE, 'Male'),
        (GENDER_FEMALE, 'Female'),
        (GENDER_OTHER, 'Other'),
    ]

    name = models.CharField(max_length=200, db_index=True)
    age = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        validators=[MaxValueValidator(150)],
    )
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES, blank=True)
    contact = models.CharField(max_length=50, db_index=True)
    email = models.EmailField(blank=True)
    address = models.CharField(max_length=255, blank=True)
    medical_history = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'patients_patient'
        ordering = ['-created_at', '-id']
        verbose_name = 'Patient'
        verbose_name_plural = 'Patients'

    def __str__(self) -> str:
        return f"{self.name} (id={self.pk})"


class PatientFile(models.Model):
    """Metadata of a document stored in external object storage.

    The bytes never pass through this service; ``storage_key`` is the object
    key the storage collaborator handed back.
    """

    MAX_FILE_SIZE = 10 * 1024 * 1024

    TYPE_PRESCRIPTION = 'prescription'
    TYPE_SCAN = 'scan'
    TYPE_REPORT = 'report'
    TYPE_OTHER = 'other'

    FILE_TYPE_CHOICES = [
        (TYPE_PRESCRIPTION, 'Prescription'),
        (TYPE_SCAN, 'Scan'),
        (TYPE_REPORT, 'Report'),
        (TYPE_OTHER, 'Other'),
    ]

    patient = models.ForeignKey(
        Patient,
        on_delete=models.CASCADE,
        related_name='files',
    )
    file_name = models.CharField(max_length=255)
    file_type = models.CharField(max_length=20, choices=FILE_TYPE_CHOICES, default=TYPE_OTHER)
    mime_type = models.CharField(max_length=100)
    file_size = models.PositiveIntegerField(
        validators=[MinValueValidator(0), MaxValueValidator(MAX_FILE_SIZE)],
    )
    storage_key = models.CharField(max_length=500, unique=True)
    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name='uploaded_files',
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'patients_file'
        ordering = ['-created_at', '-id']
        verbose_name = 'Patient file'
        verbose_name_plural = 'Patient files'

    def __str__(self) -> str:
        return f"{self.file_name} ({self.file_type})"
