"""
Comprehensive tests for bookings app.
Tests cover: PNR allocation, Ticket snapshots, Booking flow, Cancellation, Access control.
"""
from decimal import Decimal

from django.test import TestCase, override_settings
from rest_framework import serializers

from bookings.manager import ReservationManager
from bookings.models import IssuedPNR, Ticket, generate_pnr
from bookings.serializers import PassengerInputSerializer
from core.models import Account
from trains.models import Train
from utils import console
from utils.exceptions import (
    InsufficientSeats, InvalidCredentials, NotAuthenticated, NotAuthorized,
    TicketNotFound, TrainNotFound, UsernameTaken,
)


class SequenceRandom:
    """Stand-in random source that replays fixed values."""

    def __init__(self, values):
        self.values = iter(values)

    def randint(self, low, high):
        return next(self.values)


def passengers(count):
    return [
        {'name': f'Passenger {i}', 'age': 20 + i, 'gender': 'MFO'[i % 3]}
        for i in range(1, count + 1)
    ]


class ManagerTestCase(TestCase):
    """Seeds two users, an admin and one train."""

    def setUp(self):
        Account.objects.create_account('admin', 'admin123', is_admin=True)
        Account.objects.create_account('user', 'user123')
        Account.objects.create_account('other', 'other123')
        self.train = Train.objects.create(
            number=12049,
            name='Shatabdi Express',
            source='New Delhi',
            destination='Kanpur',
            fare=Decimal('1500.00'),
            total_seats=100,
        )
        self.manager = ReservationManager()

    def login_user(self, username='user', password='user123'):
        return self.manager.login(username, password)

    def seats(self, train=None):
        train = train or self.train
        train.refresh_from_db()
        return train.available_seats


# =============================================================================
# UNIT TESTS - PNR allocation
# =============================================================================

class PNRGenerationTests(TestCase):
    """Test PNR generation utility."""

    def test_pnr_is_six_digits(self):
        """Test PNR falls in the six digit range."""
        for _ in range(50):
            pnr = generate_pnr()
            self.assertTrue(100000 <= pnr <= 999999)

    @override_settings(RAILWAY_PNR_RANGE=(10, 10))
    def test_pnr_range_comes_from_settings(self):
        """Test the range is configurable."""
        self.assertEqual(generate_pnr(), 10)

    def test_allocate_records_pnr(self):
        """Test allocated PNRs are stored."""
        pnr = IssuedPNR.objects.allocate(SequenceRandom([123456]))
        self.assertEqual(pnr, 123456)
        self.assertTrue(IssuedPNR.objects.filter(pnr=123456).exists())

    def test_allocate_retries_on_collision(self):
        """Test a PNR that was already issued is drawn again."""
        IssuedPNR.objects.create(pnr=111111)
        pnr = IssuedPNR.objects.allocate(SequenceRandom([111111, 111111, 222222]))
        self.assertEqual(pnr, 222222)

    def test_allocate_many_unique(self):
        """Test multiple allocations are unique."""
        pnrs = {IssuedPNR.objects.allocate() for _ in range(100)}
        self.assertEqual(len(pnrs), 100)


# =============================================================================
# UNIT TESTS - Serializers and formatting
# =============================================================================

class PassengerInputSerializerTests(TestCase):
    """Test passenger input validation."""

    def test_valid_passenger(self):
        """Test gender codes are normalised to upper case."""
        serializer = PassengerInputSerializer(data={'name': 'Asha', 'age': '0', 'gender': 'f'})
        self.assertTrue(serializer.is_valid(), serializer.errors)
        self.assertEqual(serializer.validated_data['gender'], 'F')
        self.assertEqual(serializer.validated_data['age'], 0)

    def test_non_numeric_age(self):
        """Test age must be a number."""
        serializer = PassengerInputSerializer(data={'name': 'Asha', 'age': 'old', 'gender': 'F'})
        self.assertFalse(serializer.is_valid())
        self.assertIn('age', serializer.errors)

    def test_negative_age(self):
        """Test age cannot be negative."""
        serializer = PassengerInputSerializer(data={'name': 'Asha', 'age': -1, 'gender': 'F'})
        self.assertFalse(serializer.is_valid())
        self.assertIn('age', serializer.errors)

    def test_unknown_gender(self):
        """Test gender must be M, F or O."""
        serializer = PassengerInputSerializer(data={'name': 'Asha', 'age': 30, 'gender': 'X'})
        self.assertFalse(serializer.is_valid())
        self.assertIn('gender', serializer.errors)


class ConsoleFormattingTests(TestCase):
    """Test text rendering used by the console."""

    def test_train_row(self):
        """Test fare and seat columns."""
        train = Train(
            number=12049, name='Shatabdi Express', source='New Delhi',
            destination='Kanpur', fare=Decimal('1500'), total_seats=100, available_seats=97
        )
        row = console.train_row(train)
        self.assertTrue(row.startswith('12049'))
        self.assertIn('Rs. 1500.00', row)
        self.assertTrue(row.endswith('Seats: 97/100'))

    def test_header_is_centred(self):
        """Test header lines."""
        lines = console.header('LOGIN').splitlines()
        self.assertEqual(lines[0], '=' * 80)
        self.assertEqual(lines[1].strip(), 'LOGIN')
        self.assertEqual(lines[2], '=' * 80)

    def test_validation_message(self):
        """Test nested error details flatten into text."""
        detail = {'passengers': [{'age': ['A valid integer is required.']}], 'non_field_errors': ['Bad.']}
        message = console.validation_message(detail)
        self.assertIn('age: A valid integer is required.', message)
        self.assertIn('Bad.', message)


# =============================================================================
# INTEGRATION TESTS - Authentication
# =============================================================================

class AuthenticationTests(ManagerTestCase):
    """Test login, logout and registration through the manager."""

    def test_login_establishes_session(self):
        """Test a successful login is held by the manager."""
        session = self.login_user()
        self.assertEqual(self.manager.session, session)
        self.assertEqual(session.username, 'user')
        self.assertFalse(session.is_admin)

    def test_failed_login_keeps_no_session(self):
        """Test failed login raises the generic error."""
        with self.assertLogs('bookings.manager', level='WARNING') as logs:
            with self.assertRaises(InvalidCredentials):
                self.manager.login('user', 'USER123')
        self.assertIsNone(self.manager.session)
        self.assertIn("Failed login for 'user'", logs.output[0])

    def test_logout_clears_session(self):
        """Test logout ends the session."""
        self.login_user()
        ended = self.manager.logout()
        self.assertEqual(ended.username, 'user')
        self.assertIsNone(self.manager.session)
        self.assertIsNone(self.manager.logout())

    def test_register_scenario(self):
        """Test a second registration of a name fails and the first password still works."""
        self.manager.register('alice', 'pw1')

        with self.assertRaises(UsernameTaken):
            self.manager.register('alice', 'pw2')

        session = self.manager.login('alice', 'pw1')
        self.assertEqual(session.username, 'alice')
        self.assertFalse(session.is_admin)

    def test_register_does_not_login(self):
        """Test registration leaves the session alone."""
        self.manager.register('alice', 'pw1')
        self.assertIsNone(self.manager.session)

    def test_register_blank_password_rejected(self):
        """Test registration input is validated."""
        with self.assertRaises(serializers.ValidationError):
            self.manager.register('alice', '')

    def test_operations_require_session(self):
        """Test every ledger operation needs a login."""
        with self.assertRaises(NotAuthenticated):
            self.manager.list_trains()
        with self.assertRaises(NotAuthenticated):
            self.manager.hold_seats(12049, 1)
        with self.assertRaises(NotAuthenticated):
            self.manager.cancel_ticket(123456)
        with self.assertRaises(NotAuthenticated):
            self.manager.my_tickets()


# =============================================================================
# INTEGRATION TESTS - Booking flow
# =============================================================================

class BookingFlowTests(ManagerTestCase):
    """Test seat holds, confirmation and ticket snapshots."""

    def setUp(self):
        super().setUp()
        self.login_user()

    def test_book_and_cancel_scenario(self):
        """Test 3 seats on 12049 cost 4500.00 and cancelling restores 100/100."""
        ticket = self.manager.book_ticket(12049, passengers(3))

        self.assertEqual(self.seats(), 97)
        self.assertEqual(ticket.total_fare, Decimal('4500.00'))
        self.assertEqual(ticket.passenger_count, 3)
        self.assertEqual(ticket.booked_by, 'user')

        returned = self.manager.cancel_ticket(ticket.pnr)

        self.assertEqual(returned, 3)
        self.assertEqual(self.seats(), 100)
        self.assertFalse(Ticket.objects.filter(pnr=ticket.pnr).exists())

    def test_insufficient_seats_scenario(self):
        """Test booking 5 of 3 remaining seats fails without side effects."""
        self.train.set_capacity(3)

        with self.assertRaises(InsufficientSeats):
            self.manager.book_ticket(12049, passengers(5))

        self.assertEqual(self.seats(), 3)
        self.assertFalse(Ticket.objects.exists())
        self.assertFalse(IssuedPNR.objects.exists())

    def test_book_exactly_available(self):
        """Test booking every remaining seat then one more."""
        self.train.set_capacity(4)
        self.manager.book_ticket(12049, passengers(4))
        self.assertEqual(self.seats(), 0)

        with self.assertRaises(InsufficientSeats):
            self.manager.book_ticket(12049, passengers(1))
        self.assertEqual(self.seats(), 0)

    def test_unknown_train(self):
        """Test booking an unknown train is rejected."""
        with self.assertRaises(TrainNotFound):
            self.manager.hold_seats(99999, 1)
        self.assertFalse(IssuedPNR.objects.exists())

    def test_hold_reserves_before_passengers(self):
        """Test a hold takes seats and a PNR before any ticket exists."""
        hold = self.manager.hold_seats(12049, 2)

        self.assertEqual(self.seats(), 98)
        self.assertTrue(IssuedPNR.objects.filter(pnr=hold.pnr).exists())
        self.assertFalse(Ticket.objects.exists())

        ticket = self.manager.confirm_booking(hold, passengers(2))
        self.assertEqual(ticket.pnr, hold.pnr)
        self.assertEqual(self.seats(), 98)

    def test_release_hold_returns_seats(self):
        """Test an abandoned hold gives its seats back."""
        hold = self.manager.hold_seats(12049, 6)
        self.manager.release_hold(hold)
        self.assertEqual(self.seats(), 100)
        self.assertFalse(Ticket.objects.exists())

    def test_passenger_count_must_match_hold(self):
        """Test the passenger list must have exactly the held count."""
        hold = self.manager.hold_seats(12049, 2)

        with self.assertRaises(serializers.ValidationError):
            self.manager.confirm_booking(hold, passengers(1))
        self.assertFalse(Ticket.objects.exists())
        self.assertEqual(self.seats(), 98)

    def test_invalid_passenger_releases_seats(self):
        """Test book_ticket gives seats back when passenger data is invalid."""
        bad = [{'name': 'Asha', 'age': 'old', 'gender': 'F'}]

        with self.assertRaises(serializers.ValidationError):
            self.manager.book_ticket(12049, bad)
        self.assertEqual(self.seats(), 100)

    def test_passengers_keep_their_order(self):
        """Test passengers are stored in entry order."""
        ticket = self.manager.book_ticket(12049, passengers(3))
        names = [p.name for p in ticket.passengers.all()]
        self.assertEqual(names, ['Passenger 1', 'Passenger 2', 'Passenger 3'])

    def test_ticket_fare_fixed_at_booking(self):
        """Test later fare and capacity edits leave issued tickets alone."""
        ticket = self.manager.book_ticket(12049, passengers(2))

        self.train.set_fare(Decimal('9999.00'))
        self.train.set_capacity(10)

        ticket.refresh_from_db()
        self.assertEqual(ticket.fare, Decimal('1500.00'))
        self.assertEqual(ticket.total_fare, Decimal('3000.00'))

    def test_pnrs_never_reissued(self):
        """Test a cancelled ticket's PNR is not handed out again."""
        self.manager.rng = SequenceRandom([111111, 111111, 222222])
        first = self.manager.book_ticket(12049, passengers(1))
        self.manager.cancel_ticket(first.pnr)

        second = self.manager.book_ticket(12049, passengers(1))

        self.assertEqual(first.pnr, 111111)
        self.assertEqual(second.pnr, 222222)

    def test_confirm_hold_of_other_user(self):
        """Test a hold can only be confirmed by the user who made it."""
        hold = self.manager.hold_seats(12049, 1)
        self.manager.login('other', 'other123')

        with self.assertRaises(NotAuthorized):
            self.manager.confirm_booking(hold, passengers(1))

    def test_list_trains_sorted(self):
        """Test list_trains honours the sort key."""
        cheap = Train.objects.create(
            number=15027, name='Maurya Express', source='Gorakhpur',
            destination='Hatia', fare=Decimal('750.00'), total_seats=200
        )
        self.assertEqual(self.manager.list_trains('fare')[0].pk, cheap.pk)
        self.assertEqual(self.manager.list_trains()[0].pk, self.train.pk)


# =============================================================================
# INTEGRATION TESTS - Ledger and cancellation
# =============================================================================

class LedgerTests(ManagerTestCase):
    """Test ticket ownership, listings and cancellation edge cases."""

    def setUp(self):
        super().setUp()
        self.manager.rng = SequenceRandom([500000, 300000, 400000])
        self.login_user()
        self.mine = self.manager.book_ticket(12049, passengers(2))
        self.manager.login('other', 'other123')
        self.theirs = self.manager.book_ticket(12049, passengers(1))
        self.manager.login('user', 'user123')

    def test_cancel_ticket_of_other_user(self):
        """Test cancelling someone else's ticket fails and changes nothing."""
        with self.assertRaises(NotAuthorized):
            self.manager.cancel_ticket(self.theirs.pnr)

        self.assertTrue(Ticket.objects.filter(pnr=self.theirs.pnr).exists())
        self.assertEqual(self.seats(), 97)

    def test_admin_cannot_cancel_user_ticket(self):
        """Test admins get no cancellation override."""
        self.manager.login('admin', 'admin123')
        with self.assertRaises(NotAuthorized):
            self.manager.cancel_ticket(self.mine.pnr)

    def test_cancel_unknown_pnr(self):
        """Test unknown PNRs raise TicketNotFound."""
        with self.assertRaises(TicketNotFound):
            self.manager.cancel_ticket(999999)

    def test_cancel_twice(self):
        """Test a ticket can only be cancelled once."""
        self.manager.cancel_ticket(self.mine.pnr)
        with self.assertRaises(TicketNotFound):
            self.manager.cancel_ticket(self.mine.pnr)
        self.assertEqual(self.seats(), 99)

    def test_cancel_after_capacity_reset_is_clamped(self):
        """Test restored seats never exceed a reduced capacity."""
        self.train.set_capacity(1)
        self.manager.cancel_ticket(self.mine.pnr)
        self.assertEqual(self.seats(), 1)

    def test_cancel_skips_restore_when_train_missing(self):
        """Test cancelling still succeeds when no train has the snapshot number."""
        Train.objects.filter(pk=self.train.pk).update(number=12050)

        returned = self.manager.cancel_ticket(self.mine.pnr)

        self.assertEqual(returned, 2)
        self.assertEqual(self.seats(), 97)
        self.assertFalse(Ticket.objects.filter(pnr=self.mine.pnr).exists())

    def test_get_ticket(self):
        """Test owners can look up their tickets and others cannot."""
        self.assertEqual(self.manager.get_ticket(self.mine.pnr).pk, self.mine.pk)
        with self.assertRaises(NotAuthorized):
            self.manager.get_ticket(self.theirs.pnr)
        with self.assertRaises(TicketNotFound):
            self.manager.get_ticket(123123)

    def test_my_tickets(self):
        """Test users only see their own tickets."""
        self.assertEqual([t.pnr for t in self.manager.my_tickets()], [self.mine.pnr])

    def test_list_all_tickets_in_pnr_order(self):
        """Test the admin listing covers every ticket by PNR."""
        self.manager.login('admin', 'admin123')
        pnrs = [t.pnr for t in self.manager.list_all_tickets()]
        self.assertEqual(pnrs, [300000, 500000])

    def test_list_all_tickets_admin_only(self):
        """Test regular users cannot list the whole ledger."""
        with self.assertRaises(NotAuthorized):
            self.manager.list_all_tickets()

    def test_ticket_block(self):
        """Test the rendered ticket."""
        text = console.ticket_block(self.mine)
        self.assertIn('PNR Number: 500000', text)
        self.assertIn('Route:      New Delhi -> Kanpur', text)
        self.assertIn('Total Fare: Rs. 3000.00', text)
        self.assertIn('--- Passengers (2) ---', text)


# =============================================================================
# INTEGRATION TESTS - Admin operations
# =============================================================================

class AdminOperationTests(ManagerTestCase):
    """Test catalog edits through the manager."""

    def setUp(self):
        super().setUp()
        self.manager.login('admin', 'admin123')

    def test_add_train(self):
        """Test adding a train."""
        train = self.manager.add_train(22439, 'Vande Bharat', 'New Delhi', 'Katra', '1800.50', 80)
        self.assertEqual(train.available_seats, 80)
        self.assertEqual(train.fare, Decimal('1800.50'))

    def test_add_train_with_duplicate_number(self):
        """Test duplicate numbers are accepted."""
        self.manager.add_train(12049, 'Second Shatabdi', 'A', 'B', 10, 5)
        self.assertEqual(Train.objects.filter(number=12049).count(), 2)
        self.assertEqual(Train.objects.find(12049).pk, self.train.pk)

    def test_add_train_invalid(self):
        """Test invalid input is rejected."""
        with self.assertRaises(serializers.ValidationError):
            self.manager.add_train(1, 'X', 'A', 'B', -1, 5)

    def test_modify_train_fare_only(self):
        """Test None keeps the current capacity."""
        train = self.manager.modify_train(12049, new_fare=Decimal('1600.00'))
        self.assertEqual(train.fare, Decimal('1600.00'))
        self.assertEqual(train.total_seats, 100)

    def test_modify_train_capacity_resets_availability(self):
        """Test capacity edits reset availability without reconciling bookings."""
        self.manager.login('user', 'user123')
        self.manager.book_ticket(12049, passengers(10))
        self.manager.login('admin', 'admin123')

        train = self.manager.modify_train(12049, new_total_seats=20)

        self.assertEqual(train.total_seats, 20)
        self.assertEqual(train.available_seats, 20)
        self.assertEqual(train.fare, Decimal('1500.00'))

    def test_modify_missing_train(self):
        """Test unknown trains raise TrainNotFound."""
        with self.assertRaises(TrainNotFound):
            self.manager.modify_train(31337, new_fare=1)

    def test_admin_operations_require_admin(self):
        """Test regular users cannot edit the catalog."""
        self.manager.login('user', 'user123')
        with self.assertRaises(NotAuthorized):
            self.manager.add_train(1, 'X', 'A', 'B', 1, 1)
        with self.assertRaises(NotAuthorized):
            self.manager.modify_train(12049, new_fare=1)
