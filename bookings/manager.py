"""
Reservation manager: the one entry point the console talks to.

It holds the current session and coordinates the train inventory, the
account store and the PNR-keyed ticket ledger. Booking is two-phase:
``hold_seats`` reserves seats and allocates a PNR before any passenger
details are collected, ``confirm_booking`` writes the ticket.
"""
import logging
import random
from dataclasses import dataclass

from django.db import transaction
from rest_framework import serializers

from core.models import Account
from core.serializers import RegistrationSerializer
from core.session import Session
from trains.models import Train
from trains.serializers import TrainCreateSerializer, TrainUpdateSerializer
from utils.exceptions import (
    InsufficientSeats, InvalidCredentials, NotAuthenticated, NotAuthorized,
    TicketNotFound, TrainNotFound, UsernameTaken,
)

from .models import IssuedPNR, Passenger, Ticket
from .serializers import BookingConfirmSerializer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SeatHold:
    """Seats taken out of a train for a booking that is not confirmed yet."""
    pnr: int
    train_id: int
    train_number: int
    passenger_count: int
    username: str


class ReservationManager:

    def __init__(self, rng=None):
        self.rng = rng or random.Random()
        self.session = None

    # Session

    def login(self, username, password):
        try:
            account = Account.objects.authenticate(username, password)
        except InvalidCredentials:
            logger.warning("Failed login for %r", username)
            raise
        self.session = Session.for_account(account)
        logger.info("User %s logged in (admin=%s)", account.username, account.is_admin)
        return self.session

    def logout(self):
        ended, self.session = self.session, None
        if ended is not None:
            logger.info("User %s logged out", ended.username)
        return ended

    def check_username_available(self, username):
        if Account.objects.filter(username=username).exists():
            raise UsernameTaken(username)

    def register(self, username, password):
        serializer = RegistrationSerializer(data={'username': username, 'password': password})
        serializer.is_valid(raise_exception=True)
        account = serializer.save()
        logger.info("Registered user %s", account.username)
        return account

    def _require_session(self):
        if self.session is None:
            raise NotAuthenticated()
        return self.session

    def _require_admin(self):
        session = self._require_session()
        if not session.is_admin:
            raise NotAuthorized('This action requires an administrator.')
        return session

    # Catalog

    def list_trains(self, sort_by='number'):
        self._require_session()
        return list(Train.objects.sorted_by(sort_by))

    def add_train(self, number, name, source, destination, fare, total_seats):
        self._require_admin()
        serializer = TrainCreateSerializer(data={
            'number': number,
            'name': name,
            'source': source,
            'destination': destination,
            'fare': fare,
            'total_seats': total_seats,
        })
        serializer.is_valid(raise_exception=True)
        train = serializer.save()
        logger.info("Added train %s (%s), %d seats", train.number, train.name, train.total_seats)
        return train

    def find_train(self, number):
        self._require_session()
        return Train.objects.find(number)

    def modify_train(self, number, new_fare=None, new_total_seats=None):
        """Update fare and/or capacity. ``None`` keeps the current value."""
        self._require_admin()
        train = Train.objects.find(number)
        serializer = TrainUpdateSerializer(train, data={
            'fare': new_fare,
            'total_seats': new_total_seats,
        })
        serializer.is_valid(raise_exception=True)
        train = serializer.save()
        logger.info(
            "Modified train %s: fare=%s seats=%s/%s",
            train.number, train.fare, train.available_seats, train.total_seats
        )
        return train

    # Booking

    def hold_seats(self, train_number, passenger_count):
        """Reserve seats and allocate a PNR for a booking in progress."""
        session = self._require_session()
        train = Train.objects.find(train_number)
        try:
            train.book_seats(passenger_count)
        except InsufficientSeats as exc:
            logger.warning(
                "Rejected %d seat(s) on train %s for %s: %d available",
                passenger_count, train.number, session.username, exc.available
            )
            raise
        pnr = IssuedPNR.objects.allocate(self.rng)
        logger.info("Held %d seat(s) on train %s as PNR %d", passenger_count, train.number, pnr)
        return SeatHold(
            pnr=pnr,
            train_id=train.pk,
            train_number=train.number,
            passenger_count=passenger_count,
            username=session.username,
        )

    def release_hold(self, hold):
        """Give back the seats of a hold that will not be confirmed."""
        train = Train.objects.filter(pk=hold.train_id).first()
        if train is not None:
            train.cancel_seats(hold.passenger_count)
        logger.info("Released hold %d on train %s", hold.pnr, hold.train_number)

    def confirm_booking(self, hold, passengers):
        """Write the ticket for a hold. The train is copied as it is now."""
        session = self._require_session()
        if hold.username != session.username:
            raise NotAuthorized('This booking belongs to another user.')
        serializer = BookingConfirmSerializer(
            data={'passengers': passengers},
            context={'passenger_count': hold.passenger_count}
        )
        serializer.is_valid(raise_exception=True)

        with transaction.atomic():
            train = Train.objects.get(pk=hold.train_id)
            ticket = Ticket.objects.create(
                pnr=hold.pnr,
                train_number=train.number,
                train_name=train.name,
                source=train.source,
                destination=train.destination,
                fare=train.fare,
                booked_by=hold.username,
            )
            Passenger.objects.bulk_create([
                Passenger(ticket=ticket, position=position, **data)
                for position, data in enumerate(serializer.validated_data['passengers'], start=1)
            ])

        logger.info(
            "Booked PNR %d on train %s for %s (%d passenger(s))",
            ticket.pnr, ticket.train_number, ticket.booked_by, hold.passenger_count
        )
        return ticket

    def book_ticket(self, train_number, passengers):
        hold = self.hold_seats(train_number, len(passengers))
        try:
            return self.confirm_booking(hold, passengers)
        except serializers.ValidationError:
            self.release_hold(hold)
            raise

    # Ledger

    def get_ticket(self, pnr):
        session = self._require_session()
        ticket = Ticket.objects.filter(pnr=pnr).first()
        if ticket is None:
            raise TicketNotFound(pnr)
        if ticket.booked_by != session.username:
            raise NotAuthorized('You are not authorized to access this ticket.')
        return ticket

    def my_tickets(self):
        session = self._require_session()
        return list(
            Ticket.objects.filter(booked_by=session.username)
            .prefetch_related('passengers').order_by('pnr')
        )

    def list_all_tickets(self):
        self._require_admin()
        return list(Ticket.objects.prefetch_related('passengers').order_by('pnr'))

    def cancel_ticket(self, pnr):
        """
        Remove a ticket owned by the current user and return its seats
        to the live train. Returns the number of seats given back.
        """
        session = self._require_session()
        with transaction.atomic():
            ticket = Ticket.objects.select_for_update().filter(pnr=pnr).first()
            if ticket is None:
                logger.warning("Cancel of unknown PNR %s by %s", pnr, session.username)
                raise TicketNotFound(pnr)
            if ticket.booked_by != session.username:
                logger.warning("User %s may not cancel PNR %s", session.username, pnr)
                raise NotAuthorized('You are not authorized to cancel this ticket.')

            seats = ticket.passenger_count
            train_number = ticket.train_number
            ticket.delete()

            try:
                Train.objects.find(train_number).cancel_seats(seats)
            except TrainNotFound:
                logger.warning("Train %s for PNR %s no longer exists", train_number, pnr)

        logger.info("Cancelled PNR %s, returned %d seat(s) to train %s", pnr, seats, train_number)
        return seats
