"""Reservation domain errors."""

from shared.domain.exceptions import DomainError


class ReservationError(DomainError):
    """Base class for reservation failures."""


class CapacityFull(ReservationError):
    code = "FULL"
    status_code = 409
    default_message = "This date is fully booked. Please pick another date."


class ReservationNotFound(ReservationError):
    code = "NOT_FOUND"
    status_code = 404
    default_message = "Reservation not found"


class ReservationNotActive(ReservationError):
    code = "INVALID_STATE"
    status_code = 400
    default_message = "Reservation is no longer active. Please start your booking again."


class ReservationExpired(ReservationNotActive):
    default_message = "Reservation has expired. Please start your booking again."
