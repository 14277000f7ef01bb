"""
Interactive railway reservation console.

Usage:
    python manage.py railway                # Fresh in-memory database, seeded
    python manage.py railway --skip-setup   # Use the database as it is
"""
import io
import sys

from django.conf import settings
from django.core.management import call_command
from django.core.management.base import BaseCommand
from rest_framework import serializers

from bookings.manager import ReservationManager
from bookings.serializers import PassengerInputSerializer
from utils import console
from utils.exceptions import ReservationError


class EndOfInput(Exception):
    """Standard input was closed."""


class Command(BaseCommand):
    help = 'Run the interactive railway reservation console'
    stealth_options = ('stdin',)

    def add_arguments(self, parser):
        parser.add_argument(
            '--skip-setup',
            action='store_true',
            help='Do not migrate or seed the database before starting',
        )
        parser.add_argument(
            '--no-pause',
            action='store_true',
            help='Do not wait for Enter between screens',
        )

    def handle(self, *args, **options):
        self.stdin = options.get('stdin') or sys.stdin
        self.pause_enabled = not options['no_pause']

        if not options['skip_setup']:
            call_command('migrate', interactive=False, verbosity=0)
            call_command('seed_db', stdout=io.StringIO())

        self.manager = ReservationManager()
        try:
            self.main_menu()
        except EndOfInput:
            self.manager.logout()
            self.stdout.write('')
        self.stdout.write('\nThank you for using the system. Goodbye!')

    # Input helpers

    def read_line(self, prompt):
        self.stdout.write(prompt, ending='')
        self.stdout.flush()
        line = self.stdin.readline()
        if not line:
            raise EndOfInput()
        return line.rstrip('\r\n')

    def ask(self, prompt, field, check=None):
        """Prompt until ``field`` (and ``check``) accept the answer."""
        while True:
            raw = self.read_line(prompt)
            try:
                value = field.run_validation(raw.strip())
                return check(value) if check else value
            except serializers.ValidationError as e:
                self.stdout.write(self.style.WARNING(
                    f"      Invalid input: {console.validation_message(e.detail)}"
                ))

    def ask_int(self, prompt, **kwargs):
        kwargs.setdefault('max_value', settings.RAILWAY_MAX_INTEGER)
        return self.ask(prompt, serializers.IntegerField(**kwargs))

    def ask_text(self, prompt):
        return self.ask(prompt, serializers.CharField(max_length=255))

    def read_choice(self, prompt='Enter your choice: '):
        raw = self.read_line(prompt).strip()
        return int(raw) if raw.isdecimal() else 0

    def pause(self):
        if self.pause_enabled:
            self.read_line('\nPress Enter to continue...')

    def screen(self, title):
        console.clear_screen(self.stdout)
        self.stdout.write(console.header(title))

    def success(self, message):
        self.stdout.write(self.style.SUCCESS(f"\n✓ {message}"))

    def failure(self, message):
        self.stdout.write(self.style.ERROR(f"\n✗ {message}"))

    def attempt(self, action):
        """Run one menu action; errors end the action, never the console."""
        try:
            action()
        except ReservationError as e:
            self.failure(e.message)
        except serializers.ValidationError as e:
            self.failure(console.validation_message(e.detail))

    # Menus

    def main_menu(self):
        while True:
            self.screen('RAILWAY MANAGEMENT SYSTEM')
            self.stdout.write('1. Login\n2. Register\n3. Exit')
            choice = self.read_choice()

            if choice == 1:
                self.attempt(self.login)
                if self.manager.session is not None:
                    self.pause()
                    if self.manager.session.is_admin:
                        self.admin_menu()
                    else:
                        self.user_menu()
                self.pause()
            elif choice == 2:
                self.attempt(self.register)
                self.pause()
            elif choice == 3:
                return
            else:
                self.stdout.write('\nInvalid choice. Please try again.')
                self.pause()

    def admin_menu(self):
        actions = {
            1: self.add_train,
            2: self.modify_train,
            3: self.view_all_tickets,
        }
        while True:
            self.screen('ADMIN DASHBOARD')
            self.stdout.write(
                '1. Add New Train\n2. Modify Existing Train\n'
                '3. View All Booked Tickets\n4. Logout'
            )
            choice = self.read_choice()
            if choice == 4:
                self.logout()
                return
            if choice in actions:
                self.attempt(actions[choice])
            else:
                self.stdout.write('\nInvalid choice.')
            self.pause()

    def user_menu(self):
        actions = {
            1: self.view_trains,
            2: self.book_ticket,
            3: self.view_my_tickets,
            4: self.cancel_ticket,
        }
        while True:
            self.screen('USER DASHBOARD')
            self.stdout.write(f"Welcome, {self.manager.session.username}!\n")
            self.stdout.write(
                '1. View and Sort Available Trains\n2. Book a Ticket\n'
                '3. View My Tickets\n4. Cancel a Ticket\n5. Logout'
            )
            choice = self.read_choice()
            if choice == 5:
                self.logout()
                return
            if choice in actions:
                self.attempt(actions[choice])
            else:
                self.stdout.write('\nInvalid choice.')
            self.pause()

    # Accounts

    def login(self):
        self.stdout.write(console.header('LOGIN'))
        username = self.read_line('Enter username: ').strip()
        password = self.read_line('Enter password: ')
        session = self.manager.login(username, password)
        self.success(f"Login successful! Welcome, {session.username}.")

    def logout(self):
        self.manager.logout()
        self.stdout.write('\nLogging out...')

    def register(self):
        self.stdout.write(console.header('REGISTER NEW USER'))
        username = self.read_line('Enter new username: ').strip()
        self.manager.check_username_available(username)
        password = self.read_line('Enter new password: ')
        account = self.manager.register(username, password)
        self.success(f"User '{account.username}' registered successfully. Please login.")

    # Admin actions

    def add_train(self):
        self.stdout.write(console.header('ADD NEW TRAIN'))
        number = self.ask_int('Enter Train Number: ', min_value=1)
        name = self.ask_text('Enter Train Name: ')
        source = self.ask_text('Enter Source: ')
        destination = self.ask_text('Enter Destination: ')
        fare = self.ask('Enter Fare: ', serializers.DecimalField(
            max_digits=10, decimal_places=2, min_value=0
        ))
        seats = self.ask_int('Enter Total Seats: ', min_value=0)

        train = self.manager.add_train(number, name, source, destination, fare, seats)
        self.success(f"Train '{train.name}' added successfully.")

    def modify_train(self):
        self.stdout.write(console.header('MODIFY TRAIN DETAILS'))
        number = self.ask_int('Enter Train Number to modify: ')
        train = self.manager.find_train(number)
        self.stdout.write(f"\nFound Train: {console.train_row(train)}")

        fare = self.ask('\nEnter new fare (or -1 to keep current): ', serializers.DecimalField(
            max_digits=10, decimal_places=2
        ))
        seats = self.ask_int('Enter new total seats (or -1 to keep current): ')

        train = self.manager.modify_train(
            number,
            new_fare=None if fare == -1 else fare,
            new_total_seats=None if seats == -1 else seats,
        )
        if fare != -1:
            self.stdout.write('Fare updated.')
        if seats != -1:
            self.stdout.write('Seat capacity updated.')
        self.success('Train details modified.')

    def view_all_tickets(self):
        self.stdout.write(console.header('ALL BOOKED TICKETS'))
        tickets = self.manager.list_all_tickets()
        if not tickets:
            self.stdout.write('No tickets have been booked in the system yet.')
        for ticket in tickets:
            self.stdout.write(console.ticket_block(ticket))

    # User actions

    def view_trains(self):
        self.stdout.write(console.header('AVAILABLE TRAINS'))
        choice = self.read_choice(
            'Sort by: 1. Train Number (default) 2. Fare 3. Train Name\nEnter choice: '
        )
        sort_by = settings.RAILWAY_SORT_KEYS.get(choice, 'number')

        self.stdout.write('\n' + console.train_table_header())
        for train in self.manager.list_trains(sort_by):
            self.stdout.write(console.train_row(train))

    def book_ticket(self):
        self.stdout.write(console.header('BOOK TICKET'))
        number = self.ask_int('Enter Train Number to book: ')
        self.manager.find_train(number)
        count = self.ask_int('Enter number of passengers: ', min_value=1)

        hold = self.manager.hold_seats(number, count)
        try:
            passengers = [self.ask_passenger(i) for i in range(1, count + 1)]
            ticket = self.manager.confirm_booking(hold, passengers)
        except (EndOfInput, serializers.ValidationError):
            self.manager.release_hold(hold)
            raise

        self.success('Ticket booked successfully!')
        self.stdout.write(console.ticket_block(ticket))

    def ask_passenger(self, position):
        self.stdout.write(f"\nEnter details for Passenger {position}:")
        form = PassengerInputSerializer()
        fields = form.fields
        return {
            'name': self.ask('      Enter Passenger Name: ', fields['name']),
            'age': self.ask('      Enter Age: ', fields['age']),
            'gender': self.ask('      Enter Gender (M/F/O): ', fields['gender'], form.validate_gender),
        }

    def view_my_tickets(self):
        self.stdout.write(console.header('MY BOOKED TICKETS'))
        tickets = self.manager.my_tickets()
        if not tickets:
            self.stdout.write('You have not booked any tickets yet.')
        for ticket in tickets:
            self.stdout.write(console.ticket_block(ticket))

    def cancel_ticket(self):
        self.stdout.write(console.header('CANCEL TICKET'))
        pnr = self.ask_int('Enter PNR Number to cancel: ')
        self.manager.cancel_ticket(pnr)
        self.success(f"Ticket with PNR {pnr} has been successfully cancelled.")
