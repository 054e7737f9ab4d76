import uuid

import pytz
from django.core.exceptions import ValidationError
from django.db import models


def validate_timezone_name(value):
    if value not in pytz.all_timezones_set:
        raise ValidationError(f"'{value}' is not a known timezone.")


class Tenant(models.Model):
    """
    Root entity for multi-tenancy.
    Each restaurant on the platform is a tenant; every order, reservation,
    table and menu item belongs to exactly one.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(
        max_length=255,
        help_text="Display name for the restaurant (e.g., Joe's Pizza)"
    )
    slug = models.SlugField(
        unique=True,
        help_text="URL-safe identifier for the restaurant"
    )
    timezone = models.CharField(
        max_length=64,
        default='UTC',
        validators=[validate_timezone_name],
        help_text="IANA timezone used to interpret operating hours (e.g., America/Lima)"
    )

    # Ordering policy
    orders_enabled = models.BooleanField(
        default=True,
        help_text="When disabled, new orders are rejected"
    )
    auto_confirm_orders = models.BooleanField(
        default=False,
        help_text="Confirm new orders immediately instead of waiting for staff"
    )

    # Status
    is_active = models.BooleanField(
        default=True,
        help_text="Inactive tenants cannot access the system"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'tenants'
        ordering = ['name']
        indexes = [
            models.Index(fields=['slug']),
            models.Index(fields=['is_active']),
        ]

    def __str__(self):
        return self.name

    def get_timezone(self):
        """Return the pytz timezone object for this restaurant."""
        return pytz.timezone(self.timezone)
