from rest_framework import serializers

from .models import Order, OrderItem, OrderItemAddOn, OrderStateHistory
from .states import ItemState, OrderState


class OrderItemAddOnSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItemAddOn
        fields = ["id", "add_on", "name", "price"]


class OrderItemSerializer(serializers.ModelSerializer):
    add_ons = OrderItemAddOnSerializer(many=True, read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "position",
            "menu_item",
            "menu_item_name",
            "quantity",
            "unit_price",
            "add_ons_total",
            "subtotal",
            "state",
            "notes",
            "add_ons",
            "started_at",
            "ready_at",
            "delivered_at",
            "cancelled_at",
        ]


class OrderSerializer(serializers.ModelSerializer):
    """
    Full order representation, used by the API and as the payload of
    real-time order events.
    """

    restaurant_id = serializers.UUIDField(source="tenant_id", read_only=True)
    table_number = serializers.CharField(source="table.number", read_only=True, default=None)
    items = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "restaurant_id",
            "table",
            "table_number",
            "state",
            "customer_name",
            "customer_phone",
            "customer_email",
            "notes",
            "created_by",
            "waiter_id",
            "total_amount",
            "items",
            "confirmed_at",
            "preparing_at",
            "ready_at",
            "delivered_at",
            "cancelled_at",
            "created_at",
            "updated_at",
        ]

    def get_items(self, obj):
        items = OrderItem.all_objects.filter(order=obj).prefetch_related("add_ons").order_by("position")
        return OrderItemSerializer(items, many=True).data


class OrderStateHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderStateHistory
        fields = ["id", "order_item", "previous_state", "new_state", "actor", "notes", "created_at"]


# --- Input serializers ---

class OrderLineSerializer(serializers.Serializer):
    menu_item_id = serializers.IntegerField()
    quantity = serializers.IntegerField(default=1)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    add_on_ids = serializers.ListField(child=serializers.IntegerField(), required=False, default=list)


class OrderCreateSerializer(serializers.Serializer):
    """
    Quantities are not range-checked here; ``OrderService`` rejects
    non-positive ones with ``invalid_quantity``.
    """

    table_id = serializers.IntegerField(required=False, allow_null=True, default=None)
    items = OrderLineSerializer(many=True, allow_empty=True)
    customer_name = serializers.CharField(required=False, allow_blank=True, max_length=150, default="")
    customer_phone = serializers.CharField(required=False, allow_blank=True, max_length=30, default="")
    customer_email = serializers.EmailField(required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    waiter_id = serializers.CharField(required=False, allow_null=True, max_length=64, default=None)


class OrderStateChangeSerializer(serializers.Serializer):
    state = serializers.ChoiceField(choices=OrderState.choices)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class ItemStateChangeSerializer(serializers.Serializer):
    state = serializers.ChoiceField(choices=ItemState.choices)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class ConfirmOrderSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True, default="")
