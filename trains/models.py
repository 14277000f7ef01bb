"""
Train inventory models.
"""
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models, transaction
from django.db.models import F, Q

from utils.exceptions import InsufficientSeats, TrainNotFound


SORT_FIELDS = {
    'number': 'number',
    'fare': 'fare',
    'name': 'name',
}


class TrainQuerySet(models.QuerySet):

    def sorted_by(self, key='number'):
        """
        Order trains by number (default), fare or name.
        Ties keep insertion order, so the sort is stable.
        """
        field = SORT_FIELDS.get(key, 'number')
        return self.order_by(field, 'id')

    def find(self, number):
        """Return the first train registered under ``number``."""
        train = self.filter(number=number).order_by('id').first()
        if train is None:
            raise TrainNotFound(number)
        return train


class Train(models.Model):
    """
    A train in the catalog together with its seat inventory.
    Train numbers are catalog keys and are not required to be unique.
    """
    number = models.PositiveIntegerField()
    name = models.CharField(max_length=255)
    source = models.CharField(max_length=100)
    destination = models.CharField(max_length=100)
    fare = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    total_seats = models.PositiveIntegerField()
    available_seats = models.PositiveIntegerField()
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TrainQuerySet.as_manager()

    class Meta:
        db_table = 'trains'
        ordering = ['number', 'id']
        indexes = [
            models.Index(fields=['number'], name='trains_number_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(available_seats__lte=F('total_seats')),
                name='available_seats_within_capacity',
            ),
        ]

    def __str__(self):
        return f"{self.number} - {self.name}"

    def save(self, *args, **kwargs):
        if self.available_seats is None:
            self.available_seats = self.total_seats
        super().save(*args, **kwargs)

    def book_seats(self, num_seats):
        """Reserve ``num_seats`` seats or raise InsufficientSeats."""
        with transaction.atomic():
            locked = Train.objects.select_for_update().get(pk=self.pk)
            if num_seats < 1 or locked.available_seats < num_seats:
                self.available_seats = locked.available_seats
                raise InsufficientSeats(num_seats, locked.available_seats)
            locked.available_seats -= num_seats
            locked.save(update_fields=['available_seats'])
        self.available_seats = locked.available_seats

    def cancel_seats(self, num_seats):
        """Return seats to the pool, never above total capacity."""
        with transaction.atomic():
            locked = Train.objects.select_for_update().get(pk=self.pk)
            locked.available_seats = min(
                locked.available_seats + num_seats,
                locked.total_seats
            )
            locked.save(update_fields=['available_seats'])
        self.available_seats = locked.available_seats

    def set_fare(self, new_fare):
        self.fare = new_fare
        self.save(update_fields=['fare'])

    def set_capacity(self, new_total):
        # Outstanding tickets are not reconciled against the new capacity.
        self.total_seats = new_total
        self.available_seats = new_total
        self.save(update_fields=['total_seats', 'available_seats'])
