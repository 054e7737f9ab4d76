from django.contrib import admin

from .models import Order, OrderItem, OrderItemAddOn, OrderStateHistory


class OrderItemAddOnInline(admin.TabularInline):
    model = OrderItemAddOn
    extra = 0
    readonly_fields = ("name", "price")
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    fields = ("position", "menu_item_name", "quantity", "unit_price", "add_ons_total", "subtotal", "state")
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


class OrderStateHistoryInline(admin.TabularInline):
    model = OrderStateHistory
    extra = 0
    fields = ("created_at", "order_item", "previous_state", "new_state", "actor", "notes")
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """
    Read-mostly admin for orders. State changes go through
    ``OrderService`` so the audit trail and broadcasts stay complete.
    """

    list_display = (
        "id",
        "tenant",
        "table",
        "state",
        "get_total_formatted",
        "is_active",
        "created_at",
    )
    list_filter = ("state", "is_active", "created_at", "tenant")
    search_fields = ("id", "customer_name", "customer_phone", "customer_email")
    inlines = [OrderItemInline, OrderStateHistoryInline]
    readonly_fields = (
        "id",
        "state",
        "total_amount",
        "confirmed_at",
        "preparing_at",
        "ready_at",
        "delivered_at",
        "cancelled_at",
        "created_at",
        "updated_at",
    )

    def get_queryset(self, request):
        return Order.all_objects.select_related("tenant", "table")

    @admin.display(ordering="total_amount", description="Total")
    def get_total_formatted(self, obj):
        return f"${obj.total_amount:,.2f}"


@admin.register(OrderItem)
class OrderItemAdmin(admin.ModelAdmin):
    list_display = ("menu_item_name", "order", "quantity", "subtotal", "state")
    list_filter = ("state",)
    inlines = [OrderItemAddOnInline]
    readonly_fields = ("state", "unit_price", "add_ons_total", "subtotal")

    def get_queryset(self, request):
        return OrderItem.all_objects.select_related("order")
