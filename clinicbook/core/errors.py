"""Errors raised by the scheduling core and booking services.

Each is a terminal, user-facing rejection. Routes translate them into HTTP
responses with the message as the detail.
"""


class SchedulingError(Exception):
    """Base class for booking and availability rejections."""

    default_message = 'Scheduling request rejected.'

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFound(SchedulingError):
    default_message = 'Not found.'


class WindowExpired(SchedulingError):
    default_message = 'The modification window has expired.'


class SlotConflict(SchedulingError):
    default_message = 'This slot is no longer available.'


class InvalidInterval(SchedulingError):
    default_message = 'Start time must be before end time.'


class InvalidStatusTransition(SchedulingError):
    default_message = 'This status change is not allowed.'


class BookingRejected(SchedulingError):
    default_message = 'This booking request cannot be accepted.'
