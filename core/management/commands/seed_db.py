"""
Management command to seed the database with the starting catalog and accounts.

Usage:
    python manage.py seed_db                 # Seed from settings.RAILWAY_SEED_FILE
    python manage.py seed_db --file data.json
"""
import json
from decimal import Decimal

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from core.models import Account
from trains.models import Train
from bookings.models import Ticket


def load_seed(path):
    try:
        with open(path, encoding='utf-8') as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        raise CommandError(f"Cannot read seed file {path}: {e}")


class Command(BaseCommand):
    help = 'Seed the database with the starting train catalog and accounts'

    def add_arguments(self, parser):
        parser.add_argument(
            '--file',
            default=None,
            help='Seed file to load (defaults to settings.RAILWAY_SEED_FILE)',
        )

    def handle(self, *args, **options):
        path = options['file'] or settings.RAILWAY_SEED_FILE
        data = load_seed(path)

        self.stdout.write('Seeding database...')

        with transaction.atomic():
            self.create_accounts(data.get('accounts', []))
            self.create_trains(data.get('trains', []))

        self.stdout.write(self.style.SUCCESS('✓ Database seeded successfully!'))
        self.print_summary()

    def create_accounts(self, accounts):
        for entry in accounts:
            account, created = Account.objects.get_or_create(
                username=entry['username'],
                defaults={
                    'password': entry['password'],
                    'is_admin': entry.get('is_admin', False),
                }
            )
            if created:
                role = 'admin' if account.is_admin else 'user'
                self.stdout.write(f'  Created {role}: {account.username}')

    def create_trains(self, trains):
        # Train numbers are not unique, so skip by existence instead of get_or_create.
        for entry in trains:
            number = int(entry['number'])
            if Train.objects.filter(number=number).exists():
                continue
            seats = int(entry['total_seats'])
            train = Train.objects.create(
                number=number,
                name=entry['name'],
                source=entry['source'],
                destination=entry['destination'],
                fare=Decimal(str(entry['fare'])),
                total_seats=seats,
                available_seats=seats,
            )
            self.stdout.write(f'  Created train: {train.number} - {train.name}')

    def print_summary(self):
        self.stdout.write('\n' + '='*50)
        self.stdout.write('Database Summary:')
        self.stdout.write(f'  Accounts: {Account.objects.count()}')
        self.stdout.write(f'  Trains: {Train.objects.count()}')
        self.stdout.write(f'  Tickets: {Ticket.objects.count()}')
        self.stdout.write('='*50 + '\n')
