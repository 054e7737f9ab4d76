"""
Reservation scheduler errors.

All but ReservationNotFound are business outcomes returned to the caller
with enough context to act on (conflicting reservation, allowed window...).
"""
from rest_framework import status

from core_backend.exceptions import DomainNotFoundError, DomainValidationError


class ReservationError(DomainValidationError):
    """Base exception for rejected reservation requests."""

    code = "reservation_error"


class ReservationsDisabled(ReservationError):
    code = "reservations_disabled"
    default_message = "This restaurant does not accept reservations."
    http_status = status.HTTP_409_CONFLICT

    def __init__(self, tenant_id, message=None):
        self.tenant_id = tenant_id
        super().__init__(message, details={"restaurant_id": str(tenant_id)})


class OutsideOperatingHours(ReservationError):
    code = "outside_operating_hours"
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, local_start, local_end, window=None, message=None):
        self.local_start = local_start
        self.local_end = local_end
        self.window = window
        if message is None:
            if window is None:
                message = f"The restaurant does not take reservations on {local_start:%A}"
            else:
                message = (
                    f"Requested {local_start:%H:%M}-{local_end:%H:%M} does not fit "
                    f"opening hours {window[0]:%H:%M}-{window[1]:%H:%M}"
                )
        details = {
            "local_start": local_start.isoformat(),
            "local_end": local_end.isoformat(),
        }
        if window is not None:
            details["opening_time"] = window[0].strftime("%H:%M")
            details["closing_time"] = window[1].strftime("%H:%M")
        super().__init__(message, details=details)


class OutsideBookingWindow(ReservationError):
    code = "outside_booking_window"
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, start_time, earliest, latest, message=None):
        self.start_time = start_time
        self.earliest = earliest
        self.latest = latest
        if message is None:
            message = "Reservations must be made between the minimum and maximum advance times"
        super().__init__(
            message,
            details={
                "start_time": start_time.isoformat(),
                "earliest": earliest.isoformat(),
                "latest": latest.isoformat(),
            },
        )


class PartySizeExceedsCapacity(ReservationError):
    code = "party_size_exceeds_capacity"
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, party_size, table_capacity, policy_max, message=None):
        self.party_size = party_size
        self.table_capacity = table_capacity
        self.policy_max = policy_max
        if message is None:
            allowed = min(table_capacity, policy_max)
            message = f"Party of {party_size} exceeds the allowed maximum of {allowed}"
        super().__init__(
            message,
            details={
                "party_size": party_size,
                "table_capacity": table_capacity,
                "policy_max": policy_max,
            },
        )


class PartySizeBelowMinimum(ReservationError):
    code = "party_size_below_minimum"
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, party_size, policy_min, message=None):
        self.party_size = party_size
        self.policy_min = policy_min
        if message is None:
            message = f"Party of {party_size} is below the minimum of {policy_min}"
        super().__init__(message, details={"party_size": party_size, "policy_min": policy_min})


class SlotConflict(ReservationError):
    code = "slot_conflict"
    http_status = status.HTTP_409_CONFLICT

    def __init__(self, table_id, conflicting_reservation_id, message=None):
        self.table_id = table_id
        self.conflicting_reservation_id = conflicting_reservation_id
        if message is None:
            message = f"Table {table_id} is already booked for an overlapping time"
        super().__init__(
            message,
            details={
                "table_id": str(table_id),
                "conflicting_reservation_id": str(conflicting_reservation_id),
            },
        )


class InvalidOrExpiredCode(ReservationError):
    code = "invalid_or_expired_code"
    http_status = status.HTTP_400_BAD_REQUEST

    def __init__(self, confirmation_code, expired=False, message=None):
        self.confirmation_code = confirmation_code
        self.expired = expired
        if message is None:
            message = "Confirmation code has expired" if expired else "Confirmation code is not valid"
        super().__init__(message, details={"expired": expired})


class AlreadyProcessed(ReservationError):
    code = "already_processed"
    http_status = status.HTTP_409_CONFLICT

    def __init__(self, reservation_id, current_status, message=None):
        self.reservation_id = reservation_id
        self.current_status = current_status
        if message is None:
            message = f"Reservation is already {current_status}"
        super().__init__(
            message,
            details={"reservation_id": str(reservation_id), "current_status": str(current_status)},
        )


class IllegalReservationTransition(ReservationError):
    code = "illegal_reservation_transition"
    http_status = status.HTTP_409_CONFLICT

    def __init__(self, reservation_id, current_status, target_status, message=None):
        self.reservation_id = reservation_id
        self.current_status = current_status
        self.target_status = target_status
        if message is None:
            message = f"Cannot move reservation from {current_status} to {target_status}"
        super().__init__(
            message,
            details={
                "reservation_id": str(reservation_id),
                "current_status": str(current_status),
                "target_status": str(target_status),
            },
        )


class ReservationNotFound(DomainNotFoundError):
    code = "reservation_not_found"

    def __init__(self, reservation_id, message=None):
        self.reservation_id = reservation_id
        super().__init__(
            message or f"Reservation {reservation_id} not found",
            details={"reservation_id": str(reservation_id)},
        )
