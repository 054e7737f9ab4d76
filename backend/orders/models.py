import uuid
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _

from core_backend.utils.append_only import AppendOnlyModel
from core_backend.utils.archiving import SoftDeleteMixin
from tenant.managers import TenantManager

from .states import ORDER_TERMINAL_STATES, ItemState, OrderState


class Order(SoftDeleteMixin):
    """
    One customer order within a restaurant, tied to a table or to a
    table-less (takeaway / virtual) session.

    ``state`` is only changed by ``orders.services.OrderService`` and always
    agrees with the states of the order's items.
    """

    State = OrderState

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant = models.ForeignKey(
        'tenant.Tenant',
        on_delete=models.CASCADE,
        related_name='orders'
    )
    table = models.ForeignKey(
        'catalog.DiningTable',
        on_delete=models.PROTECT,
        related_name='orders',
        null=True,
        blank=True,
        help_text=_("Empty for takeaway or virtual sessions")
    )
    state = models.CharField(
        max_length=30,
        choices=OrderState.choices,
        default=OrderState.PENDIENTE_CONFIRMACION,
        db_index=True
    )

    # --- Customer ---
    customer_name = models.CharField(max_length=150, blank=True)
    customer_phone = models.CharField(max_length=30, blank=True)
    customer_email = models.EmailField(blank=True)
    notes = models.TextField(blank=True)

    # --- Staff (identity provider ids) ---
    created_by = models.CharField(max_length=64, null=True, blank=True)
    waiter_id = models.CharField(max_length=64, null=True, blank=True)

    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    # --- Stage timestamps ---
    confirmed_at = models.DateTimeField(null=True, blank=True)
    preparing_at = models.DateTimeField(null=True, blank=True)
    ready_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()
    all_objects = models.Manager()

    class Meta:
        default_manager_name = "all_objects"
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['tenant', 'state']),
            models.Index(fields=['tenant', 'created_at']),
            models.Index(fields=['tenant', 'table']),
        ]

    def __str__(self):
        return f"Order {self.pk} ({self.get_state_display()})"

    @property
    def is_terminal(self):
        return self.state in ORDER_TERMINAL_STATES


class OrderItem(models.Model):
    """
    One line of an order with its own fulfilment state. Prices are snapshots
    taken at order creation and never follow later menu edits.
    """

    State = ItemState

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    tenant = models.ForeignKey(
        'tenant.Tenant',
        on_delete=models.CASCADE,
        related_name='order_items'
    )
    position = models.PositiveIntegerField(help_text=_("Insertion order within the order, from 1"))
    menu_item = models.ForeignKey(
        'catalog.MenuItem',
        on_delete=models.PROTECT,
        related_name='order_items'
    )
    menu_item_name = models.CharField(max_length=200)
    quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    add_ons_total = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    subtotal = models.DecimalField(max_digits=12, decimal_places=2)
    state = models.CharField(
        max_length=20,
        choices=ItemState.choices,
        default=ItemState.PENDIENTE,
        db_index=True
    )
    notes = models.TextField(blank=True)

    started_at = models.DateTimeField(null=True, blank=True)
    ready_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()
    all_objects = models.Manager()

    class Meta:
        default_manager_name = "all_objects"
        ordering = ['position']
        constraints = [
            models.UniqueConstraint(fields=['order', 'position'], name='unique_order_item_position'),
        ]

    def __str__(self):
        return f"{self.quantity} x {self.menu_item_name} ({self.get_state_display()})"


class OrderItemAddOn(models.Model):
    order_item = models.ForeignKey(OrderItem, on_delete=models.CASCADE, related_name='add_ons')
    add_on = models.ForeignKey(
        'catalog.AddOn',
        on_delete=models.SET_NULL,
        null=True,
        related_name='order_item_add_ons'
    )
    name = models.CharField(max_length=200)
    price = models.DecimalField(max_digits=10, decimal_places=2)

    class Meta:
        ordering = ['id']

    def __str__(self):
        return f"{self.name} (+{self.price})"


class OrderStateHistory(AppendOnlyModel):
    """
    Audit trail entry. ``order_item`` is empty for order-level transitions
    and set for item-level ones. ``previous_state`` is empty for the creation
    entry. Written in the same transaction as the transition it records.
    """

    order = models.ForeignKey(Order, on_delete=models.PROTECT, related_name='history')
    order_item = models.ForeignKey(
        OrderItem,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='history'
    )
    previous_state = models.CharField(max_length=30, null=True, blank=True)
    new_state = models.CharField(max_length=30)
    actor = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        help_text=_("Identity provider user id; empty for system or public actors")
    )
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(db_index=True)

    class Meta:
        ordering = ['created_at', 'id']
        indexes = [
            models.Index(fields=['order', 'created_at']),
        ]
        verbose_name_plural = _("Order state history")

    def __str__(self):
        target = f"item {self.order_item_id}" if self.order_item_id else "order"
        return f"{self.order_id} {target}: {self.previous_state} -> {self.new_state}"
