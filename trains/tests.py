"""
Comprehensive tests for trains app.
Tests cover: Seat inventory bookkeeping, Admin edits, Catalog ordering, Serializer validation.
"""
from decimal import Decimal
from unittest import mock

from django.db import IntegrityError, transaction
from django.test import TestCase

from trains.models import Train
from trains.serializers import TrainCreateSerializer, TrainUpdateSerializer
from utils.exceptions import InsufficientSeats, TrainNotFound


def make_train(number=12049, name='Shatabdi Express', fare='1500.00', seats=100, **extra):
    return Train.objects.create(
        number=number,
        name=name,
        source=extra.pop('source', 'New Delhi'),
        destination=extra.pop('destination', 'Kanpur'),
        fare=Decimal(fare),
        total_seats=seats,
        **extra
    )


# =============================================================================
# UNIT TESTS - Seat inventory
# =============================================================================

class TrainSeatTests(TestCase):
    """Test book_seats / cancel_seats bookkeeping."""

    def setUp(self):
        self.train = make_train(seats=10)

    def test_new_train_starts_fully_available(self):
        """Test available seats default to the total."""
        self.assertEqual(self.train.available_seats, 10)

    def test_book_seats_decrements(self):
        """Test booking reduces available seats."""
        self.train.book_seats(3)
        self.train.refresh_from_db()
        self.assertEqual(self.train.available_seats, 7)

    def test_book_exactly_remaining_seats(self):
        """Test booking n seats when n are left leaves zero."""
        self.train.book_seats(4)
        self.train.book_seats(6)
        self.train.refresh_from_db()
        self.assertEqual(self.train.available_seats, 0)

    def test_book_more_than_available_fails(self):
        """Test overbooking raises and leaves seats unchanged."""
        self.train.book_seats(7)

        with self.assertRaises(InsufficientSeats) as ctx:
            self.train.book_seats(4)

        self.assertEqual(ctx.exception.available, 3)
        self.assertEqual(ctx.exception.requested, 4)
        self.train.refresh_from_db()
        self.assertEqual(self.train.available_seats, 3)

    def test_book_zero_or_negative_seats_fails(self):
        """Test booking requires at least one seat."""
        for count in (0, -2):
            with self.assertRaises(InsufficientSeats):
                self.train.book_seats(count)
        self.train.refresh_from_db()
        self.assertEqual(self.train.available_seats, 10)

    def test_book_seats_sees_changes_made_elsewhere(self):
        """Test booking checks the stored count, not a stale instance."""
        stale = Train.objects.get(pk=self.train.pk)
        self.train.book_seats(8)

        with self.assertRaises(InsufficientSeats):
            stale.book_seats(5)
        self.assertEqual(stale.available_seats, 2)

    def test_cancel_seats_restores(self):
        """Test cancelling returns seats."""
        self.train.book_seats(5)
        self.train.cancel_seats(3)
        self.train.refresh_from_db()
        self.assertEqual(self.train.available_seats, 8)

    def test_cancel_seats_clamped_at_total(self):
        """Test over-cancellation never exceeds capacity."""
        self.train.book_seats(2)
        self.train.cancel_seats(50)
        self.train.refresh_from_db()
        self.assertEqual(self.train.available_seats, 10)

    def test_available_seats_cannot_exceed_total(self):
        """Test the database rejects availability above capacity."""
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                make_train(number=1, seats=5, available_seats=6)


# =============================================================================
# UNIT TESTS - Admin edits
# =============================================================================

class TrainAdminEditTests(TestCase):
    """Test fare and capacity edits."""

    def setUp(self):
        self.train = make_train(seats=100)

    def test_set_fare(self):
        """Test fare update is saved."""
        self.train.set_fare(Decimal('1750.25'))
        self.train.refresh_from_db()
        self.assertEqual(self.train.fare, Decimal('1750.25'))

    def test_set_capacity_resets_available(self):
        """Test capacity change resets availability even with seats sold."""
        self.train.book_seats(30)
        self.train.set_capacity(50)
        self.train.refresh_from_db()
        self.assertEqual(self.train.total_seats, 50)
        self.assertEqual(self.train.available_seats, 50)


# =============================================================================
# UNIT TESTS - Catalog lookup and ordering
# =============================================================================

class TrainCatalogTests(TestCase):
    """Test find() and sorted_by()."""

    def setUp(self):
        self.a = make_train(number=30, name='Charlie Mail', fare='500.00')
        self.b = make_train(number=10, name='Alpha Express', fare='900.00')
        self.c = make_train(number=20, name='Bravo Local', fare='500.00')
        self.d = make_train(number=10, name='Alpha Express', fare='100.00')

    def numbers(self, key):
        return [t.pk for t in Train.objects.sorted_by(key)]

    def test_default_sort_is_by_number(self):
        """Test number ordering with insertion order breaking ties."""
        self.assertEqual(self.numbers('number'), [self.b.pk, self.d.pk, self.c.pk, self.a.pk])

    def test_sort_by_fare(self):
        """Test fare ordering is ascending and stable."""
        self.assertEqual(self.numbers('fare'), [self.d.pk, self.a.pk, self.c.pk, self.b.pk])

    def test_sort_by_name(self):
        """Test name ordering is lexicographic and stable."""
        self.assertEqual(self.numbers('name'), [self.b.pk, self.d.pk, self.c.pk, self.a.pk])

    def test_unknown_sort_key_falls_back_to_number(self):
        """Test unknown keys behave like the default."""
        self.assertEqual(self.numbers('speed'), self.numbers('number'))

    def test_find_returns_first_registered(self):
        """Test duplicate numbers resolve to the earliest train."""
        self.assertEqual(Train.objects.find(10).pk, self.b.pk)

    def test_find_missing_train(self):
        """Test unknown numbers raise TrainNotFound."""
        with self.assertRaises(TrainNotFound) as ctx:
            Train.objects.find(99999)
        self.assertEqual(ctx.exception.number, 99999)


# =============================================================================
# UNIT TESTS - Serializers
# =============================================================================

class TrainSerializerTests(TestCase):
    """Test admin input validation."""

    def valid_data(self, **overrides):
        data = {
            'number': 12345,
            'name': 'Test Express',
            'source': 'Delhi',
            'destination': 'Mumbai',
            'fare': '1000.00',
            'total_seats': 100,
        }
        data.update(overrides)
        return data

    def test_create_train(self):
        """Test valid data creates a fully available train."""
        serializer = TrainCreateSerializer(data=self.valid_data())
        self.assertTrue(serializer.is_valid(), serializer.errors)
        train = serializer.save()

        self.assertEqual(train.available_seats, 100)
        self.assertEqual(train.fare, Decimal('1000.00'))

    def test_duplicate_number_allowed(self):
        """Test train numbers are not required to be unique."""
        make_train(number=12345)
        serializer = TrainCreateSerializer(data=self.valid_data())
        self.assertTrue(serializer.is_valid(), serializer.errors)
        serializer.save()
        self.assertEqual(Train.objects.filter(number=12345).count(), 2)

    def test_negative_fare_rejected(self):
        """Test fare must be non-negative."""
        serializer = TrainCreateSerializer(data=self.valid_data(fare='-5'))
        self.assertFalse(serializer.is_valid())
        self.assertIn('fare', serializer.errors)

    def test_non_numeric_seats_rejected(self):
        """Test seat count must be an integer."""
        serializer = TrainCreateSerializer(data=self.valid_data(total_seats='many'))
        self.assertFalse(serializer.is_valid())
        self.assertIn('total_seats', serializer.errors)

    def test_blank_name_rejected(self):
        """Test name is required."""
        serializer = TrainCreateSerializer(data=self.valid_data(name='   '))
        self.assertFalse(serializer.is_valid())
        self.assertIn('name', serializer.errors)

    def test_update_keeps_null_fields(self):
        """Test null fields leave the train unchanged."""
        train = make_train(seats=80)
        train.book_seats(5)

        serializer = TrainUpdateSerializer(train, data={'fare': None, 'total_seats': None})
        self.assertTrue(serializer.is_valid(), serializer.errors)
        serializer.save()
        train.refresh_from_db()

        self.assertEqual(train.fare, Decimal('1500.00'))
        self.assertEqual(train.total_seats, 80)
        self.assertEqual(train.available_seats, 75)

    def test_update_fare_only(self):
        """Test updating only the fare keeps availability."""
        train = make_train(seats=80)
        train.book_seats(5)

        serializer = TrainUpdateSerializer(train, data={'fare': '2000.00'})
        self.assertTrue(serializer.is_valid(), serializer.errors)
        serializer.save()
        train.refresh_from_db()

        self.assertEqual(train.fare, Decimal('2000.00'))
        self.assertEqual(train.available_seats, 75)

    def test_oversized_number_rejected(self):
        """Test train numbers beyond the integer column range are rejected."""
        serializer = TrainCreateSerializer(data=self.valid_data(number=10 ** 22))
        self.assertFalse(serializer.is_valid())
        self.assertIn('number', serializer.errors)

    def test_oversized_seats_rejected(self):
        """Test seat counts beyond the integer column range are rejected."""
        serializer = TrainCreateSerializer(data=self.valid_data(total_seats=2147483648))
        self.assertFalse(serializer.is_valid())
        self.assertIn('total_seats', serializer.errors)

        train = make_train()
        serializer = TrainUpdateSerializer(train, data={'total_seats': 10 ** 22})
        self.assertFalse(serializer.is_valid())
        self.assertIn('total_seats', serializer.errors)

    def test_update_is_all_or_nothing(self):
        """Test a failed capacity edit also rolls back the fare edit."""
        train = make_train(seats=80)
        serializer = TrainUpdateSerializer(train, data={'fare': '2000.00', 'total_seats': 60})
        self.assertTrue(serializer.is_valid(), serializer.errors)

        with mock.patch.object(Train, 'set_capacity', side_effect=IntegrityError('boom')):
            with self.assertRaises(IntegrityError):
                serializer.save()
        train.refresh_from_db()

        self.assertEqual(train.fare, Decimal('1500.00'))
        self.assertEqual(train.total_seats, 80)
