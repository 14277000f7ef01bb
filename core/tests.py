"""
Comprehensive tests for core app - Accounts, seeding and the console.
Tests cover: Account store, Registration validation, seed_db command, Scripted console sessions.
"""
import json
import os
import tempfile
from decimal import Decimal
from io import StringIO

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase

from bookings.models import IssuedPNR, Ticket
from core.models import Account
from core.serializers import RegistrationSerializer
from core.session import Session
from trains.models import Train
from utils.exceptions import InvalidCredentials, UsernameTaken


# =============================================================================
# UNIT TESTS - Models
# =============================================================================

class AccountModelTests(TestCase):
    """Test Account store constraints and authentication."""

    def test_create_account(self):
        """Test creating an account is successful."""
        account = Account.objects.create_account('alice', 'pw1')

        self.assertEqual(account.username, 'alice')
        self.assertEqual(account.password, 'pw1')
        self.assertFalse(account.is_admin)

    def test_create_account_without_username_raises_error(self):
        """Test creating an account without username raises ValueError."""
        with self.assertRaises(ValueError):
            Account.objects.create_account('', 'pw')

    def test_duplicate_username_raises(self):
        """Test taken usernames raise UsernameTaken."""
        Account.objects.create_account('alice', 'pw1')

        with self.assertRaises(UsernameTaken):
            Account.objects.create_account('alice', 'pw2')
        self.assertEqual(Account.objects.get(username='alice').password, 'pw1')

    def test_authenticate_success(self):
        """Test exact password match returns the account."""
        Account.objects.create_account('alice', 'pw1')
        self.assertEqual(Account.objects.authenticate('alice', 'pw1').username, 'alice')

    def test_authenticate_is_case_sensitive(self):
        """Test usernames and passwords are compared exactly."""
        Account.objects.create_account('alice', 'Secret')

        with self.assertRaises(InvalidCredentials):
            Account.objects.authenticate('alice', 'secret')
        with self.assertRaises(InvalidCredentials):
            Account.objects.authenticate('Alice', 'Secret')

    def test_failure_message_does_not_reveal_which_part_was_wrong(self):
        """Test unknown user and wrong password give the same message."""
        Account.objects.create_account('alice', 'pw1')

        with self.assertRaises(InvalidCredentials) as unknown:
            Account.objects.authenticate('bob', 'pw1')
        with self.assertRaises(InvalidCredentials) as wrong:
            Account.objects.authenticate('alice', 'nope')

        self.assertEqual(unknown.exception.message, wrong.exception.message)
        self.assertEqual(unknown.exception.message, 'Invalid username or password.')

    def test_session_for_account(self):
        """Test a session copies the username and role."""
        account = Account.objects.create_account('root', 'pw', is_admin=True)
        session = Session.for_account(account)

        self.assertEqual(session.username, 'root')
        self.assertTrue(session.is_admin)
        self.assertIsNotNone(session.started_at)


# =============================================================================
# UNIT TESTS - Serializers
# =============================================================================

class RegistrationSerializerTests(TestCase):
    """Test registration input validation."""

    def test_valid_registration_creates_regular_user(self):
        """Test registration never creates an admin."""
        serializer = RegistrationSerializer(data={'username': 'carol', 'password': 'pw'})
        self.assertTrue(serializer.is_valid(), serializer.errors)
        account = serializer.save()

        self.assertFalse(account.is_admin)

    def test_blank_fields_rejected(self):
        """Test username and password are required."""
        serializer = RegistrationSerializer(data={'username': '', 'password': ''})
        self.assertFalse(serializer.is_valid())
        self.assertIn('username', serializer.errors)
        self.assertIn('password', serializer.errors)

    def test_username_with_spaces_rejected(self):
        """Test usernames are single words."""
        serializer = RegistrationSerializer(data={'username': 'john doe', 'password': 'pw'})
        self.assertFalse(serializer.is_valid())
        self.assertIn('username', serializer.errors)


# =============================================================================
# INTEGRATION TESTS - seed_db
# =============================================================================

class SeedCommandTests(TestCase):
    """Test the seed_db management command."""

    def test_seed_creates_accounts_and_catalog(self):
        """Test default seed data loads two accounts and five trains."""
        out = StringIO()
        call_command('seed_db', stdout=out)

        self.assertTrue(Account.objects.get(username='admin').is_admin)
        self.assertFalse(Account.objects.get(username='user').is_admin)
        self.assertEqual(Train.objects.count(), 5)

        train = Train.objects.find(12049)
        self.assertEqual(train.fare, Decimal('1500.00'))
        self.assertEqual(train.available_seats, 100)
        self.assertIn('Database seeded successfully', out.getvalue())

    def test_seed_is_idempotent(self):
        """Test seeding twice does not duplicate data."""
        call_command('seed_db', stdout=StringIO())
        call_command('seed_db', stdout=StringIO())

        self.assertEqual(Account.objects.count(), 2)
        self.assertEqual(Train.objects.count(), 5)

    def test_seed_from_custom_file(self):
        """Test --file loads an alternative seed file."""
        data = {
            'accounts': [{'username': 'ops', 'password': 'ops1', 'is_admin': True}],
            'trains': [{
                'number': 101, 'name': 'Test Mail', 'source': 'A', 'destination': 'B',
                'fare': '10.50', 'total_seats': 4,
            }],
        }
        fd, path = tempfile.mkstemp(suffix='.json')
        with os.fdopen(fd, 'w') as f:
            json.dump(data, f)
        self.addCleanup(os.remove, path)

        call_command('seed_db', file=path, stdout=StringIO())

        self.assertTrue(Account.objects.get(username='ops').is_admin)
        self.assertEqual(Train.objects.find(101).total_seats, 4)

    def test_missing_seed_file(self):
        """Test an unreadable file is reported as a command error."""
        with self.assertRaises(CommandError):
            call_command('seed_db', file='/nonexistent/seed.json', stdout=StringIO())


# =============================================================================
# INTEGRATION TESTS - Console
# =============================================================================

class ConsoleTests(TestCase):
    """Drive the railway command with scripted input."""

    def setUp(self):
        call_command('seed_db', stdout=StringIO())

    def run_console(self, *lines):
        out = StringIO()
        script = StringIO(''.join(f"{line}\n" for line in lines))
        call_command('railway', skip_setup=True, no_pause=True, stdin=script, stdout=out)
        return out.getvalue()

    def test_exit(self):
        """Test choosing Exit ends the console."""
        output = self.run_console('3')
        self.assertIn('RAILWAY MANAGEMENT SYSTEM', output)
        self.assertIn('Goodbye', output)

    def test_end_of_input_exits_cleanly(self):
        """Test closed input behaves like Exit."""
        output = self.run_console('9')
        self.assertIn('Invalid choice. Please try again.', output)
        self.assertIn('Goodbye', output)

    def test_failed_login(self):
        """Test wrong credentials return to the main menu."""
        output = self.run_console('1', 'user', 'wrong', '3')
        self.assertIn('Invalid username or password.', output)
        self.assertNotIn('USER DASHBOARD', output)

    def test_register_then_duplicate(self):
        """Test registration and duplicate username rejection."""
        output = self.run_console(
            '2', 'alice', 'pw1',
            '2', 'alice',
            '3',
        )
        self.assertIn("User 'alice' registered successfully.", output)
        self.assertIn('Username already exists', output)
        self.assertEqual(Account.objects.get(username='alice').password, 'pw1')

    def test_user_books_views_and_cancels(self):
        """Test a full user session."""
        output = self.run_console(
            '1', 'user', 'user123',
            '1', '2',
            '2', '12049', '2',
            'Asha', '34', 'F',
            'Ravi', 'abc', '36', 'm',
            '3',
            '5',
            '3',
        )
        ticket = Ticket.objects.get()

        self.assertIn('USER DASHBOARD', output)
        self.assertIn('Seats Available', output)
        self.assertIn('Invalid input', output)
        self.assertIn('Ticket booked successfully!', output)
        self.assertIn('Total Fare: Rs. 3000.00', output)
        self.assertIn(f'PNR Number: {ticket.pnr}', output)
        self.assertEqual([p.gender for p in ticket.passengers.all()], ['F', 'M'])
        self.assertEqual(Train.objects.find(12049).available_seats, 98)

        output = self.run_console(
            '1', 'user', 'user123',
            '4', str(ticket.pnr),
            '3',
            '5',
            '3',
        )
        self.assertIn(f'Ticket with PNR {ticket.pnr} has been successfully cancelled.', output)
        self.assertIn('You have not booked any tickets yet.', output)
        self.assertEqual(Train.objects.find(12049).available_seats, 100)

    def test_overbooking_is_reported(self):
        """Test insufficient seats message and unchanged inventory."""
        output = self.run_console(
            '1', 'user', 'user123',
            '2', '12951', '73',
            '5',
            '3',
        )
        self.assertIn('Only 72 left.', output)
        self.assertEqual(Train.objects.find(12951).available_seats, 72)
        self.assertFalse(IssuedPNR.objects.exists())

    def test_unknown_train_is_reported(self):
        """Test booking an unknown train number."""
        output = self.run_console(
            '1', 'user', 'user123',
            '2', '11111',
            '5',
            '3',
        )
        self.assertIn('Invalid Train Number.', output)

    def test_end_of_input_during_booking_releases_seats(self):
        """Test abandoned passenger entry gives the seats back."""
        self.run_console(
            '1', 'user', 'user123',
            '2', '12049', '3',
            'Asha',
        )
        self.assertEqual(Train.objects.find(12049).available_seats, 100)
        self.assertFalse(Ticket.objects.exists())

    def test_admin_adds_and_modifies_trains(self):
        """Test the admin dashboard actions."""
        output = self.run_console(
            '1', 'admin', 'admin123',
            '1', '777', 'Night Mail', 'Pune', 'Nagpur', '99.50', '10',
            '2', '12049', '-1', '50',
            '3',
            '4',
            '3',
        )
        self.assertIn('ADMIN DASHBOARD', output)
        self.assertIn("Train 'Night Mail' added successfully.", output)
        self.assertIn('Seat capacity updated.', output)
        self.assertNotIn('Fare updated.', output)
        self.assertIn('No tickets have been booked in the system yet.', output)

        added = Train.objects.find(777)
        self.assertEqual(added.fare, Decimal('99.50'))
        self.assertEqual(added.available_seats, 10)

        modified = Train.objects.find(12049)
        self.assertEqual(modified.fare, Decimal('1500.00'))
        self.assertEqual(modified.total_seats, 50)
        self.assertEqual(modified.available_seats, 50)

    def test_admin_modify_unknown_train(self):
        """Test modifying a missing train is reported."""
        output = self.run_console(
            '1', 'admin', 'admin123',
            '2', '424242',
            '4',
            '3',
        )
        self.assertIn('Invalid Train Number.', output)

    def test_oversized_numbers_are_reprompted(self):
        """Test out-of-range train numbers and seat counts never reach the database."""
        huge = '99999999999999999999999'
        output = self.run_console(
            '1', 'admin', 'admin123',
            '1', huge, '778', 'Night Mail', 'Pune', 'Nagpur', '99.50', huge, '10',
            '2', '12049', '-1', huge, '50',
            '2', huge, '424242',
            '4',
            '3',
        )
        self.assertIn('less than or equal to 2147483647', output)
        self.assertIn("Train 'Night Mail' added successfully.", output)
        self.assertIn('Train details modified.', output)
        self.assertEqual(Train.objects.find(778).total_seats, 10)
        self.assertEqual(Train.objects.find(12049).total_seats, 50)
        self.assertIn('Goodbye', output)

    def test_oversized_pnr_is_reprompted(self):
        """Test an out-of-range PNR is rejected at the prompt."""
        output = self.run_console(
            '1', 'user', 'user123',
            '4', '99999999999999999999999', '123456',
            '5',
            '3',
        )
        self.assertIn('Invalid input', output)
        self.assertIn('Invalid PNR.', output)
        self.assertIn('Goodbye', output)

    def test_non_ascii_digit_choice_is_invalid(self):
        """Test superscript digits count as an invalid menu choice."""
        output = self.run_console('²', '1', 'user', 'user123', '²', '5', '3')
        self.assertIn('Invalid choice. Please try again.', output)
        self.assertIn('Invalid choice.', output)
        self.assertIn('USER DASHBOARD', output)
        self.assertIn('Goodbye', output)
