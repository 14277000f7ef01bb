"""
Text formatting helpers for the interactive console.
"""
from decimal import Decimal

SCREEN_WIDTH = 80
TABLE_WIDTH = 110

TRAIN_COLUMNS = [
    ('Train No.', 10),
    ('Train Name', 25),
    ('Source', 20),
    ('Destination', 20),
    ('Fare', 15),
]


def header(title, width=SCREEN_WIDTH):
    """Return a title centred between two rules."""
    rule = '=' * width
    return f"{rule}\n{title.center(width).rstrip()}\n{rule}"


def rule(char='-', width=SCREEN_WIDTH):
    return char * width


def format_fare(amount):
    return f"Rs. {Decimal(amount):.2f}"


def clear_screen(stream):
    """Clear the terminal, but only when writing to a real one."""
    isatty = getattr(stream, 'isatty', None)
    if isatty is not None and isatty():
        stream.write('\033[2J\033[H', ending='')


def train_table_header():
    cells = ''.join(title.ljust(width) for title, width in TRAIN_COLUMNS)
    return f"{cells}Seats Available\n{rule(width=TABLE_WIDTH)}"


def train_row(train, show_seats=True):
    fare = f"{Decimal(train.fare):.2f}".ljust(10)
    row = (
        f"{str(train.number).ljust(10)}"
        f"{train.name.ljust(25)}"
        f"{train.source.ljust(20)}"
        f"{train.destination.ljust(20)}"
        f"Rs. {fare}"
    )
    if show_seats:
        row += f"Seats: {train.available_seats}/{train.total_seats}"
    return row.rstrip()


def passenger_line(passenger):
    return (
        f"      Name: {passenger.name.ljust(20)}"
        f"Age: {str(passenger.age).ljust(5)}"
        f"Gender: {passenger.gender}"
    )


def ticket_block(ticket):
    """Render a ticket with its passengers."""
    passengers = list(ticket.passengers.all())
    lines = [
        header('TICKET DETAILS'),
        f"  PNR Number: {ticket.pnr}",
        f"  Booked By: {ticket.booked_by}",
        f"  Train No:   {ticket.train_number} ({ticket.train_name})",
        f"  Route:      {ticket.source} -> {ticket.destination}",
        f"  Total Fare: {format_fare(ticket.fare * len(passengers))}",
        '',
        f"--- Passengers ({len(passengers)}) ---",
    ]
    lines.extend(passenger_line(p) for p in passengers)
    lines.append(rule())
    return '\n'.join(lines)


def validation_message(detail):
    """Flatten a DRF ValidationError detail into one line of text."""
    if isinstance(detail, dict):
        parts = []
        for field, value in detail.items():
            text = validation_message(value)
            parts.append(text if field == 'non_field_errors' else f"{field}: {text}")
        return '; '.join(parts)
    if isinstance(detail, (list, tuple)):
        return ' '.join(validation_message(item) for item in detail if item)
    return str(detail)
