"""
Reservation scheduler.

Decides whether a proposed reservation window is legal for a table and
persists it. The overlap query and the insert run in one transaction while
the table row is locked, so two concurrent bookings for the same table
cannot both pass the conflict check.
"""
from datetime import datetime, timedelta
import logging
import secrets

from django.conf import settings
from django.core.exceptions import ValidationError
from django.utils import timezone

from catalog.services import TableDirectory
from core_backend.exceptions import InfrastructureError
from core_backend.transactions import retry_on_serialization_failure, transaction_scope
from notifications.services import EventType, event_broadcaster

from .exceptions import (
    AlreadyProcessed,
    IllegalReservationTransition,
    InvalidOrExpiredCode,
    OutsideBookingWindow,
    OutsideOperatingHours,
    PartySizeBelowMinimum,
    PartySizeExceedsCapacity,
    ReservationNotFound,
    ReservationsDisabled,
    SlotConflict,
)
from .models import Reservation, ReservationPolicy, ReservationStateHistory

logger = logging.getLogger(__name__)

Status = Reservation.Status


class ReservationScheduler:
    """Admission checks and lifecycle operations for table reservations."""

    # ------------------------------------------------------------------
    # Policy checks
    # ------------------------------------------------------------------

    @staticmethod
    def get_policy(tenant):
        """Return the restaurant's enabled policy or raise ReservationsDisabled."""
        policy = ReservationPolicy.objects.filter(tenant=tenant).first()
        if policy is None or not policy.reservations_enabled:
            raise ReservationsDisabled(tenant.pk)
        return policy

    @staticmethod
    def check_booking_window(policy, start_time, now=None):
        now = now or timezone.now()
        earliest = now + timedelta(hours=policy.min_advance_hours)
        latest = now + timedelta(days=policy.max_advance_days)
        if start_time <= now or start_time < earliest or start_time > latest:
            raise OutsideBookingWindow(start_time, earliest, latest)

    @staticmethod
    def _opening_windows(policy, tz, local_date):
        """
        Yield aware (open, close) datetimes that could contain a start on
        ``local_date``: that day's own window, plus the previous day's window
        when it runs past midnight.
        """
        hours_by_day = {hours.day_of_week: hours for hours in policy.hours.all()}

        for offset in (0, -1):
            day = local_date + timedelta(days=offset)
            hours = hours_by_day.get(day.weekday())
            if hours is None or hours.is_closed:
                continue
            if offset == -1 and not hours.spans_midnight:
                continue

            opens = tz.localize(datetime.combine(day, hours.opening_time))
            close_day = day + timedelta(days=1) if hours.spans_midnight else day
            closes = tz.localize(datetime.combine(close_day, hours.closing_time))
            yield hours, opens, closes

    @classmethod
    def check_operating_hours(cls, policy, tenant, start_time):
        """
        The slot [start, start + slot duration) must sit inside one opening
        window of the weekday the start falls on, in the restaurant's timezone.
        """
        tz = tenant.get_timezone()
        local_start = start_time.astimezone(tz)
        end_time = start_time + policy.slot_duration
        local_end = end_time.astimezone(tz)

        matched = None
        for hours, opens, closes in cls._opening_windows(policy, tz, local_start.date()):
            if opens <= start_time and end_time <= closes:
                return
            if matched is None:
                matched = (hours.opening_time, hours.closing_time)

        raise OutsideOperatingHours(local_start, local_end, window=matched)

    @staticmethod
    def check_party_size(policy, table, party_size):
        if party_size < policy.min_party_size:
            raise PartySizeBelowMinimum(party_size, policy.min_party_size)
        if party_size > table.capacity or party_size > policy.max_party_size:
            raise PartySizeExceedsCapacity(party_size, table.capacity, policy.max_party_size)

    @staticmethod
    def find_conflicts(table, start_time, blocked_until, exclude_id=None):
        """
        Non-cancelled reservations on ``table`` whose effective interval
        intersects [start_time, blocked_until).
        """
        conflicts = Reservation.all_objects.filter(
            table=table,
            is_active=True,
            start_time__lt=blocked_until,
            blocked_until__gt=start_time,
        ).exclude(status=Status.CANCELLED)
        if exclude_id is not None:
            conflicts = conflicts.exclude(pk=exclude_id)
        return conflicts.order_by('start_time')

    @classmethod
    def _admit(cls, tenant, policy, table_id, start_time, party_size, now=None, exclude_id=None):
        """Run every admission check and return (table, end_time, blocked_until)."""
        cls.check_booking_window(policy, start_time, now=now)
        cls.check_operating_hours(policy, tenant, start_time)

        table = TableDirectory.get_table(tenant, table_id, for_update=True)
        cls.check_party_size(policy, table, party_size)

        end_time = start_time + policy.slot_duration
        blocked_until = end_time + policy.buffer

        conflict = cls.find_conflicts(table, start_time, blocked_until, exclude_id=exclude_id).first()
        if conflict is not None:
            logger.info(f"Slot conflict on table {table.pk}: overlaps reservation {conflict.pk}")
            raise SlotConflict(table.pk, conflict.pk)

        return table, end_time, blocked_until

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    @staticmethod
    def generate_confirmation_code():
        """Eight uppercase hex characters, unique across all reservations."""
        attempts = getattr(settings, 'RESERVATION_CODE_ATTEMPTS', 10)
        for _ in range(attempts):
            code = secrets.token_hex(4).upper()
            if not Reservation.all_objects.filter(confirmation_code=code).exists():
                return code
        raise InfrastructureError("Could not generate a unique confirmation code")

    @staticmethod
    def _record(reservation, previous_status, actor=None, notes=""):
        return ReservationStateHistory.objects.create(
            reservation=reservation,
            previous_status=previous_status,
            new_status=reservation.status,
            actor=str(actor) if actor else None,
            notes=notes,
            created_at=timezone.now(),
        )

    @staticmethod
    def _publish(reservation, event_type):
        from .serializers import ReservationSerializer

        event_broadcaster.publish(
            reservation.tenant_id,
            event_type,
            ReservationSerializer(reservation).data,
        )

    @classmethod
    @retry_on_serialization_failure
    def create_reservation(
        cls,
        tenant,
        table_id,
        start_time,
        party_size,
        customer_name,
        customer_phone="",
        customer_email="",
        notes="",
        actor=None,
        now=None,
        deadline=None,
    ):
        """
        Validate and persist a new reservation in ``pending`` state.

        Raises:
            ReservationsDisabled, OutsideBookingWindow, OutsideOperatingHours,
            TableNotFound, PartySizeBelowMinimum, PartySizeExceedsCapacity,
            SlotConflict
        """
        if timezone.is_naive(start_time):
            raise ValueError("start_time must be timezone-aware")

        with transaction_scope(deadline=deadline):
            policy = cls.get_policy(tenant)
            table, end_time, blocked_until = cls._admit(
                tenant, policy, table_id, start_time, party_size, now=now
            )

            reservation = Reservation.all_objects.create(
                tenant=tenant,
                table=table,
                customer_name=customer_name,
                customer_phone=customer_phone,
                customer_email=customer_email,
                notes=notes,
                start_time=start_time,
                end_time=end_time,
                blocked_until=blocked_until,
                party_size=party_size,
                status=Status.PENDING,
                confirmation_code=cls.generate_confirmation_code(),
                created_by=str(actor) if actor else None,
            )
            cls._record(reservation, None, actor=actor)
            cls._publish(reservation, EventType.RESERVATION_CREATED)

        logger.info(f"Reservation {reservation.pk} created for table {table.number} at {start_time.isoformat()}")
        return reservation

    @staticmethod
    def _get_for_update(tenant, reservation_id):
        try:
            return Reservation.all_objects.select_for_update().get(pk=reservation_id, tenant=tenant)
        except (Reservation.DoesNotExist, ValueError, ValidationError):
            raise ReservationNotFound(reservation_id)

    @classmethod
    def _confirm(cls, reservation, actor=None, notes=""):
        previous = reservation.status
        reservation.status = Status.CONFIRMED
        reservation.confirmed_at = timezone.now()
        reservation.save(update_fields=['status', 'confirmed_at', 'updated_at'])
        cls._record(reservation, previous, actor=actor, notes=notes)
        cls._publish(reservation, EventType.RESERVATION_CONFIRMED)
        logger.info(f"Reservation {reservation.pk} confirmed")
        return reservation

    @classmethod
    def confirm_by_code(cls, code, tenant=None, now=None, deadline=None):
        """
        Public confirmation: ``pending -> confirmed``.

        Already confirmed reservations are returned unchanged. Cancelled or
        completed ones raise AlreadyProcessed; unknown codes and pending
        reservations whose start already passed raise InvalidOrExpiredCode.
        """
        normalized = (code or "").strip().upper()
        now = now or timezone.now()

        with transaction_scope(deadline=deadline):
            queryset = Reservation.all_objects.select_for_update().filter(confirmation_code=normalized)
            if tenant is not None:
                queryset = queryset.filter(tenant=tenant)
            reservation = queryset.first()

            if reservation is None:
                raise InvalidOrExpiredCode(normalized)
            if reservation.status == Status.CONFIRMED:
                return reservation
            if reservation.status != Status.PENDING:
                raise AlreadyProcessed(reservation.pk, reservation.status)
            if reservation.start_time <= now:
                raise InvalidOrExpiredCode(normalized, expired=True)

            return cls._confirm(reservation, notes="confirmed by code")

    @classmethod
    def confirm_reservation(cls, tenant, reservation_id, actor=None, deadline=None):
        """Staff confirmation; same outcomes as ``confirm_by_code`` without expiry."""
        with transaction_scope(deadline=deadline):
            reservation = cls._get_for_update(tenant, reservation_id)
            if reservation.status == Status.CONFIRMED:
                return reservation
            if reservation.status != Status.PENDING:
                raise AlreadyProcessed(reservation.pk, reservation.status)
            return cls._confirm(reservation, actor=actor)

    @classmethod
    def cancel_reservation(cls, tenant, reservation_id, reason="", actor=None, deadline=None):
        """Cancel and archive a pending or confirmed reservation; its slot frees up."""
        with transaction_scope(deadline=deadline):
            reservation = cls._get_for_update(tenant, reservation_id)
            if not reservation.is_open:
                raise AlreadyProcessed(reservation.pk, reservation.status)

            previous = reservation.status
            reservation.status = Status.CANCELLED
            reservation.cancelled_at = timezone.now()
            reservation.cancelled_by = str(actor) if actor else None
            reservation.cancellation_reason = reason
            reservation.archive(
                archived_by=actor,
                extra_update_fields=['status', 'cancelled_at', 'cancelled_by', 'cancellation_reason', 'updated_at'],
            )
            cls._record(reservation, previous, actor=actor, notes=reason)
            cls._publish(reservation, EventType.RESERVATION_CANCELLED)

        logger.info(f"Reservation {reservation.pk} cancelled")
        return reservation

    @classmethod
    def mark_arrived(cls, tenant, reservation_id, actor=None, deadline=None):
        with transaction_scope(deadline=deadline):
            reservation = cls._get_for_update(tenant, reservation_id)
            if reservation.status != Status.CONFIRMED:
                raise IllegalReservationTransition(reservation.pk, reservation.status, "arrived")
            if reservation.arrived_at is not None:
                raise AlreadyProcessed(reservation.pk, "arrived")

            reservation.arrived_at = timezone.now()
            reservation.save(update_fields=['arrived_at', 'updated_at'])
            cls._record(reservation, reservation.status, actor=actor, notes="arrived")
            cls._publish(reservation, EventType.RESERVATION_UPDATED)
        return reservation

    @classmethod
    def mark_completed(cls, tenant, reservation_id, actor=None, deadline=None):
        """Record the party's departure: ``confirmed -> completed``."""
        with transaction_scope(deadline=deadline):
            reservation = cls._get_for_update(tenant, reservation_id)
            if reservation.status != Status.CONFIRMED:
                raise IllegalReservationTransition(reservation.pk, reservation.status, Status.COMPLETED)

            now = timezone.now()
            previous = reservation.status
            reservation.status = Status.COMPLETED
            reservation.departed_at = now
            if reservation.arrived_at is None:
                reservation.arrived_at = now
            reservation.save(update_fields=['status', 'arrived_at', 'departed_at', 'updated_at'])
            cls._record(reservation, previous, actor=actor)
            cls._publish(reservation, EventType.RESERVATION_UPDATED)
        return reservation

    @classmethod
    @retry_on_serialization_failure
    def reschedule_reservation(
        cls,
        tenant,
        reservation_id,
        start_time,
        table_id=None,
        party_size=None,
        actor=None,
        now=None,
        deadline=None,
    ):
        """Move an open reservation, re-running every admission check except against itself."""
        with transaction_scope(deadline=deadline):
            reservation = cls._get_for_update(tenant, reservation_id)
            if not reservation.is_open:
                raise AlreadyProcessed(reservation.pk, reservation.status)

            policy = cls.get_policy(tenant)
            if party_size is None:
                party_size = reservation.party_size
            table, end_time, blocked_until = cls._admit(
                tenant,
                policy,
                table_id or reservation.table_id,
                start_time,
                party_size,
                now=now,
                exclude_id=reservation.pk,
            )

            reservation.table = table
            reservation.start_time = start_time
            reservation.end_time = end_time
            reservation.blocked_until = blocked_until
            reservation.party_size = party_size
            reservation.save(update_fields=[
                'table', 'start_time', 'end_time', 'blocked_until', 'party_size', 'updated_at',
            ])
            cls._record(reservation, reservation.status, actor=actor, notes="rescheduled")
            cls._publish(reservation, EventType.RESERVATION_UPDATED)

        logger.info(f"Reservation {reservation.pk} moved to {start_time.isoformat()}")
        return reservation

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @staticmethod
    def get_reservation(tenant, reservation_id):
        try:
            return Reservation.all_objects.get(pk=reservation_id, tenant=tenant)
        except (Reservation.DoesNotExist, ValueError, ValidationError):
            raise ReservationNotFound(reservation_id)

    @staticmethod
    def reservations_for_day(tenant, day, include_cancelled=False):
        """Reservations starting on local calendar ``day`` of the restaurant."""
        tz = tenant.get_timezone()
        day_start = tz.localize(datetime.combine(day, datetime.min.time()))
        day_end = tz.localize(datetime.combine(day + timedelta(days=1), datetime.min.time()))
        queryset = Reservation.all_objects.filter(
            tenant=tenant, start_time__gte=day_start, start_time__lt=day_end
        ).select_related('table')
        if not include_cancelled:
            queryset = queryset.exclude(status=Status.CANCELLED)
        return queryset.order_by('start_time')

    @staticmethod
    def get_history(tenant, reservation_id):
        ReservationScheduler.get_reservation(tenant, reservation_id)
        return ReservationStateHistory.objects.filter(reservation_id=reservation_id).order_by('created_at', 'id')
