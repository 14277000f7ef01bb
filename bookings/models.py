"""Ticket ledger models."""
import random

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import IntegrityError, models, transaction
from django.utils import timezone


def generate_pnr(rng=random):
    low, high = settings.RAILWAY_PNR_RANGE
    return rng.randint(low, high)


class IssuedPNRManager(models.Manager):

    def allocate(self, rng=random):
        """Draw PNRs until one has never been issued, and record it."""
        while True:
            pnr = generate_pnr(rng)
            if self.filter(pnr=pnr).exists():
                continue
            try:
                with transaction.atomic():
                    self.create(pnr=pnr)
            except IntegrityError:
                continue
            return pnr


class IssuedPNR(models.Model):
    """Every PNR handed out, kept after its ticket is cancelled."""
    pnr = models.PositiveIntegerField(unique=True)
    issued_at = models.DateTimeField(default=timezone.now)

    objects = IssuedPNRManager()

    class Meta:
        db_table = 'issued_pnrs'

    def __str__(self):
        return str(self.pnr)


class Ticket(models.Model):
    """
    A booked ticket. The train fields are a copy taken at booking time,
    so later edits to the live train leave the ticket untouched.
    """
    pnr = models.PositiveIntegerField(unique=True)
    train_number = models.PositiveIntegerField()
    train_name = models.CharField(max_length=255)
    source = models.CharField(max_length=100)
    destination = models.CharField(max_length=100)
    fare = models.DecimalField(max_digits=10, decimal_places=2)
    booked_by = models.CharField(max_length=150)
    booked_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'tickets'
        ordering = ['pnr']
        indexes = [
            models.Index(fields=['booked_by'], name='tickets_booked_by_idx'),
        ]

    def __str__(self):
        return f"PNR: {self.pnr} - {self.booked_by}"

    @property
    def passenger_count(self):
        return self.passengers.count()

    @property
    def total_fare(self):
        return self.fare * self.passenger_count


class Passenger(models.Model):
    GENDER_CHOICES = [('M', 'Male'), ('F', 'Female'), ('O', 'Other')]

    ticket = models.ForeignKey(Ticket, on_delete=models.CASCADE, related_name='passengers')
    position = models.PositiveSmallIntegerField()
    name = models.CharField(max_length=255)
    age = models.PositiveSmallIntegerField(validators=[MinValueValidator(0)])
    gender = models.CharField(max_length=1, choices=GENDER_CHOICES)

    class Meta:
        db_table = 'passengers'
        ordering = ['position']

    def __str__(self):
        return f"{self.name} ({self.age}{self.gender})"
