import uuid
from datetime import timedelta

from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _

from core_backend.utils.append_only import AppendOnlyModel
from core_backend.utils.archiving import SoftDeleteMixin
from tenant.managers import TenantManager


class ReservationPolicy(models.Model):
    """
    Per-restaurant reservation configuration.

    Read-only input to the scheduler; edited by restaurant staff through the
    configuration screens.
    """

    tenant = models.OneToOneField(
        "tenant.Tenant",
        on_delete=models.CASCADE,
        related_name="reservation_policy",
    )
    reservations_enabled = models.BooleanField(default=True)
    slot_duration_minutes = models.PositiveIntegerField(
        default=120,
        validators=[MinValueValidator(15), MaxValueValidator(480)],
        help_text=_("How long a table is held for one reservation"),
    )
    buffer_minutes = models.PositiveIntegerField(
        default=15,
        help_text=_("Turnover time kept free after each reservation"),
    )
    max_party_size = models.PositiveIntegerField(default=20, validators=[MinValueValidator(1)])
    min_party_size = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    min_advance_hours = models.PositiveIntegerField(
        default=2,
        help_text=_("Bookings must be made at least this many hours ahead"),
    )
    max_advance_days = models.PositiveIntegerField(
        default=30,
        validators=[MinValueValidator(1)],
        help_text=_("Bookings cannot be made further ahead than this"),
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name_plural = _("Reservation policies")

    def __str__(self):
        return f"Reservation policy for {self.tenant}"

    def clean(self):
        if self.min_party_size > self.max_party_size:
            raise ValidationError(_("Minimum party size cannot exceed the maximum."))

    @property
    def slot_duration(self):
        return timedelta(minutes=self.slot_duration_minutes)

    @property
    def buffer(self):
        return timedelta(minutes=self.buffer_minutes)


class ReservationHours(models.Model):
    """
    Opening window for one weekday. A closing time at or before the opening
    time means the window runs past midnight into the next day.
    """

    DAYS_OF_WEEK = [
        (0, _("Monday")),
        (1, _("Tuesday")),
        (2, _("Wednesday")),
        (3, _("Thursday")),
        (4, _("Friday")),
        (5, _("Saturday")),
        (6, _("Sunday")),
    ]

    policy = models.ForeignKey(
        ReservationPolicy,
        on_delete=models.CASCADE,
        related_name="hours",
    )
    day_of_week = models.IntegerField(choices=DAYS_OF_WEEK)
    is_closed = models.BooleanField(default=False)
    opening_time = models.TimeField(null=True, blank=True)
    closing_time = models.TimeField(null=True, blank=True)

    class Meta:
        unique_together = ["policy", "day_of_week"]
        ordering = ["day_of_week"]
        verbose_name_plural = _("Reservation hours")

    def __str__(self):
        day_name = dict(self.DAYS_OF_WEEK)[self.day_of_week]
        if self.is_closed:
            return f"{day_name}: Closed"
        return f"{day_name}: {self.opening_time:%H:%M}-{self.closing_time:%H:%M}"

    def clean(self):
        if not self.is_closed and (self.opening_time is None or self.closing_time is None):
            raise ValidationError(_("Open days need both an opening and a closing time."))

    @property
    def spans_midnight(self):
        return self.closing_time <= self.opening_time


class Reservation(SoftDeleteMixin):
    """
    A booking of one table for one time window.

    ``end_time`` is start + slot duration; ``blocked_until`` adds the buffer
    and is the end of the effective interval used for overlap checks. Both
    are fixed at booking time so later policy edits do not move existing
    reservations.
    """

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        CONFIRMED = "confirmed", _("Confirmed")
        CANCELLED = "cancelled", _("Cancelled")
        COMPLETED = "completed", _("Completed")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant = models.ForeignKey(
        "tenant.Tenant",
        on_delete=models.CASCADE,
        related_name="reservations",
    )
    table = models.ForeignKey(
        "catalog.DiningTable",
        on_delete=models.PROTECT,
        related_name="reservations",
    )
    customer_name = models.CharField(max_length=150)
    customer_phone = models.CharField(max_length=30, blank=True)
    customer_email = models.EmailField(blank=True)
    notes = models.TextField(blank=True)

    start_time = models.DateTimeField()
    end_time = models.DateTimeField()
    blocked_until = models.DateTimeField()
    party_size = models.PositiveIntegerField(validators=[MinValueValidator(1)])

    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING, db_index=True)
    confirmation_code = models.CharField(max_length=8, unique=True)

    created_by = models.CharField(max_length=64, null=True, blank=True)
    confirmed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancelled_by = models.CharField(max_length=64, null=True, blank=True)
    cancellation_reason = models.TextField(blank=True)
    arrived_at = models.DateTimeField(null=True, blank=True)
    departed_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()
    all_objects = models.Manager()

    class Meta:
        default_manager_name = "all_objects"
        ordering = ["start_time"]
        indexes = [
            models.Index(fields=["table", "start_time"]),
            models.Index(fields=["tenant", "start_time"]),
            models.Index(fields=["tenant", "status"]),
        ]

    def __str__(self):
        return f"{self.customer_name} x{self.party_size} @ {self.start_time:%Y-%m-%d %H:%M} ({self.status})"

    @property
    def is_open(self):
        return self.status in (self.Status.PENDING, self.Status.CONFIRMED)


class ReservationStateHistory(AppendOnlyModel):
    reservation = models.ForeignKey(
        Reservation,
        on_delete=models.PROTECT,
        related_name="history",
    )
    previous_status = models.CharField(max_length=20, choices=Reservation.Status.choices, null=True, blank=True)
    new_status = models.CharField(max_length=20, choices=Reservation.Status.choices)
    actor = models.CharField(max_length=64, null=True, blank=True)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(db_index=True)

    class Meta:
        ordering = ["created_at", "id"]
        verbose_name_plural = _("Reservation state history")

    def __str__(self):
        return f"{self.reservation_id}: {self.previous_status} -> {self.new_status}"
