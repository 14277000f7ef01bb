"""
Domain errors raised by the reservation manager.

Every error carries a user-facing ``message``; the console prints it and
returns to the menu it was called from.
"""


class ReservationError(Exception):
    """Base class for all reservation failures."""
    default_message = 'Reservation request failed.'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFound(ReservationError):
    default_message = 'Not found.'


class TrainNotFound(NotFound):
    default_message = 'Invalid Train Number.'

    def __init__(self, number=None, message=None):
        self.number = number
        super().__init__(message)


class TicketNotFound(NotFound):
    default_message = 'Invalid PNR.'

    def __init__(self, pnr=None, message=None):
        self.pnr = pnr
        super().__init__(message)


class InsufficientSeats(ReservationError):
    """Raised when a train cannot cover the requested seat count."""

    def __init__(self, requested, available):
        self.requested = requested
        self.available = available
        super().__init__(f"Not enough seats available. Only {available} left.")


class UsernameTaken(ReservationError):
    default_message = 'Username already exists. Please try another.'

    def __init__(self, username=None, message=None):
        self.username = username
        super().__init__(message)


class NotAuthorized(ReservationError):
    default_message = 'You are not authorized to perform this action.'


class NotAuthenticated(ReservationError):
    default_message = 'Please login first.'


class InvalidCredentials(ReservationError):
    # Same message for unknown users and wrong passwords.
    default_message = 'Invalid username or password.'
