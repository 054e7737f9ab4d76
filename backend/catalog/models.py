"""
Collaborator records the order/reservation core reads: menu items and their
add-ons, dining tables, and the restaurant's staff users.

Menu items, tables and staff are plan-bound: they are created only through
``catalog.services.CatalogService`` so the resource ledger can admit them.
"""
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _

from core_backend.utils.archiving import SoftDeleteMixin
from tenant.managers import TenantManager, TenantSoftDeleteManager


class DiningTable(SoftDeleteMixin):
    tenant = models.ForeignKey(
        "tenant.Tenant",
        on_delete=models.CASCADE,
        related_name="dining_tables",
    )
    number = models.CharField(max_length=20, help_text=_("Label shown to staff, e.g. 'T4'"))
    capacity = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1)],
        help_text=_("Maximum number of seated guests"),
    )
    area = models.CharField(max_length=100, blank=True, help_text=_("Terrace, main hall..."))
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantSoftDeleteManager()
    all_objects = models.Manager()

    class Meta:
        default_manager_name = "all_objects"
        ordering = ["number"]
        constraints = [
            models.UniqueConstraint(
                fields=["tenant", "number"],
                condition=models.Q(is_active=True),
                name="unique_active_table_number",
            ),
        ]
        indexes = [
            models.Index(fields=["tenant", "is_active"]),
        ]

    def __str__(self):
        return f"Table {self.number} ({self.capacity} seats)"


class MenuItem(SoftDeleteMixin):
    tenant = models.ForeignKey(
        "tenant.Tenant",
        on_delete=models.CASCADE,
        related_name="menu_items",
    )
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    is_available = models.BooleanField(
        default=True,
        help_text=_("Temporarily sold out items stay listed but cannot be ordered"),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantSoftDeleteManager()
    all_objects = models.Manager()

    class Meta:
        default_manager_name = "all_objects"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["tenant", "is_active", "is_available"]),
        ]

    def __str__(self):
        return self.name


class AddOn(models.Model):
    """Optional extra (sauce, side, topping) that can be attached to an order item."""

    tenant = models.ForeignKey(
        "tenant.Tenant",
        on_delete=models.CASCADE,
        related_name="add_ons",
    )
    name = models.CharField(max_length=200)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    is_available = models.BooleanField(default=True)

    objects = TenantManager()
    all_objects = models.Manager()

    class Meta:
        default_manager_name = "all_objects"
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} (+{self.price})"


class StaffMember(SoftDeleteMixin):
    """A user seat on the restaurant's plan, keyed by the identity provider's id."""

    class Role(models.TextChoices):
        OWNER = "owner", _("Owner")
        MANAGER = "manager", _("Manager")
        WAITER = "waiter", _("Waiter")
        KITCHEN = "kitchen", _("Kitchen")

    tenant = models.ForeignKey(
        "tenant.Tenant",
        on_delete=models.CASCADE,
        related_name="staff_members",
    )
    external_user_id = models.CharField(max_length=64)
    display_name = models.CharField(max_length=150)
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.WAITER)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantSoftDeleteManager()
    all_objects = models.Manager()

    class Meta:
        default_manager_name = "all_objects"
        ordering = ["display_name"]
        constraints = [
            models.UniqueConstraint(
                fields=["tenant", "external_user_id"],
                condition=models.Q(is_active=True),
                name="unique_active_staff_member",
            ),
        ]

    def __str__(self):
        return f"{self.display_name} ({self.get_role_display()})"
