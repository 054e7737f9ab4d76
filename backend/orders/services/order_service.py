from decimal import Decimal
import logging

from django.core.exceptions import ValidationError
from django.db.models import Sum
from django.utils import timezone

from catalog.services import MenuCatalog, TableDirectory
from core_backend.transactions import retry_on_serialization_failure, transaction_scope
from notifications.services import EventType, event_broadcaster
from orders.exceptions import (
    EmptyOrder,
    IllegalTransition,
    InvalidQuantity,
    ItemUnavailable,
    OrderAlreadyTerminal,
    OrderNotDeletable,
    OrderNotFound,
    OrdersDisabled,
)
from orders.models import Order, OrderItem, OrderItemAddOn
from orders.states import (
    ITEM_PROGRESSION,
    ITEM_TERMINAL_STATES,
    ORDER_STAGE_TO_ITEM_FLOOR,
    VALID_ORDER_TRANSITIONS,
    ItemState,
    OrderState,
    can_transition_order,
    item_rank,
)

from .history_service import OrderHistoryService

logger = logging.getLogger(__name__)

ORDER_STAGE_TIMESTAMPS = {
    OrderState.CONFIRMADO: "confirmed_at",
    OrderState.EN_PREPARACION: "preparing_at",
    OrderState.LISTO: "ready_at",
    OrderState.ENTREGADO: "delivered_at",
    OrderState.CANCELADO: "cancelled_at",
}

ITEM_STAGE_TIMESTAMPS = {
    ItemState.PREPARANDO: "started_at",
    ItemState.LISTO: "ready_at",
    ItemState.ENTREGADO: "delivered_at",
    ItemState.CANCELADO: "cancelled_at",
}


class OrderService:
    """Core service for the order lifecycle - creation, confirmation, state changes and history."""

    VALID_STATE_TRANSITIONS = VALID_ORDER_TRANSITIONS

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    @staticmethod
    def _normalize_lines(items):
        if not items:
            raise EmptyOrder()

        lines = []
        for line in items:
            menu_item_id = line.get("menu_item_id")
            if menu_item_id is None:
                raise ItemUnavailable(message="Every order line needs a menu_item_id")

            quantity = line.get("quantity", 1)
            try:
                parsed_quantity = int(quantity)
            except (TypeError, ValueError):
                raise InvalidQuantity(menu_item_id, quantity)
            if parsed_quantity < 1:
                raise InvalidQuantity(menu_item_id, quantity)
            lines.append({
                "menu_item_id": menu_item_id,
                "quantity": parsed_quantity,
                "notes": line.get("notes") or "",
                "add_on_ids": list(line.get("add_on_ids") or []),
            })
        return lines

    @staticmethod
    @retry_on_serialization_failure
    def create_order(
        tenant,
        items,
        table_id=None,
        actor=None,
        customer_name="",
        customer_phone="",
        customer_email="",
        notes="",
        waiter_id=None,
        deadline=None,
    ) -> Order:
        """
        Creates an order in ``pendiente_confirmacion`` (or ``confirmado`` when the
        restaurant auto-confirms) with price snapshots for every line.

        Args:
            tenant: restaurant taking the order
            items: list of dicts with ``menu_item_id`` and optional ``quantity``,
                ``notes`` and ``add_on_ids``, in kitchen display order
            table_id: optional table; None for takeaway / virtual sessions
            actor: identity provider user id, None for public checkout

        Raises:
            OrdersDisabled, EmptyOrder, InvalidQuantity, TableNotFound, ItemUnavailable
        """
        if not tenant.orders_enabled:
            raise OrdersDisabled()

        lines = OrderService._normalize_lines(items)

        with transaction_scope(deadline=deadline):
            table = TableDirectory.get_table(tenant, table_id) if table_id is not None else None

            requested_ids = [line["menu_item_id"] for line in lines]
            menu = MenuCatalog.get_menu_items(tenant, requested_ids)
            unavailable_items = [
                pk for pk in dict.fromkeys(requested_ids)
                if pk not in menu or not menu[pk].is_available
            ]

            requested_add_on_ids = list(dict.fromkeys(pk for line in lines for pk in line["add_on_ids"]))
            add_ons = MenuCatalog.get_add_ons(tenant, requested_add_on_ids)
            unavailable_add_ons = [
                pk for pk in requested_add_on_ids
                if pk not in add_ons or not add_ons[pk].is_available
            ]

            if unavailable_items or unavailable_add_ons:
                logger.info(
                    f"Order rejected for tenant {tenant.pk}: unavailable items {unavailable_items}, "
                    f"add-ons {unavailable_add_ons}"
                )
                raise ItemUnavailable(unavailable_items, unavailable_add_ons)

            order = Order.all_objects.create(
                tenant=tenant,
                table=table,
                state=OrderState.PENDIENTE_CONFIRMACION,
                customer_name=customer_name,
                customer_phone=customer_phone,
                customer_email=customer_email,
                notes=notes,
                created_by=str(actor) if actor else None,
                waiter_id=str(waiter_id) if waiter_id else None,
            )

            for position, line in enumerate(lines, start=1):
                menu_item = menu[line["menu_item_id"]]
                line_add_ons = [add_ons[pk] for pk in line["add_on_ids"]]
                add_ons_total = sum((add_on.price for add_on in line_add_ons), Decimal("0.00"))

                order_item = OrderItem.all_objects.create(
                    order=order,
                    tenant=tenant,
                    position=position,
                    menu_item=menu_item,
                    menu_item_name=menu_item.name,
                    quantity=line["quantity"],
                    unit_price=menu_item.price,
                    add_ons_total=add_ons_total,
                    subtotal=(menu_item.price + add_ons_total) * line["quantity"],
                    notes=line["notes"],
                )
                OrderItemAddOn.objects.bulk_create([
                    OrderItemAddOn(order_item=order_item, add_on=add_on, name=add_on.name, price=add_on.price)
                    for add_on in line_add_ons
                ])

            OrderService._recalculate_total(order)
            OrderHistoryService.record_transition(
                order, None, OrderState.PENDIENTE_CONFIRMACION, actor=actor, notes="order created"
            )

            if tenant.auto_confirm_orders:
                OrderService._set_state(order, OrderState.CONFIRMADO, notes="auto-confirmed by restaurant policy")

            OrderService._publish(order, EventType.ORDER_CREATED)

        logger.info(f"Created order {order.pk} for tenant {tenant.pk} with {len(lines)} items")
        return order

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    @staticmethod
    @retry_on_serialization_failure
    def confirm_order(order_id, actor=None, notes="", deadline=None) -> Order:
        """``pendiente_confirmacion -> confirmado``; any other current state is an IllegalTransition."""
        with transaction_scope(deadline=deadline):
            order = OrderService._lock_order(order_id)
            if order.is_terminal:
                raise OrderAlreadyTerminal(order.pk, order.state, OrderState.CONFIRMADO)
            if order.state != OrderState.PENDIENTE_CONFIRMACION:
                raise IllegalTransition(order.pk, order.state, OrderState.CONFIRMADO)

            OrderService._set_state(order, OrderState.CONFIRMADO, actor=actor, notes=notes)
            OrderService._publish(order, EventType.ORDER_CONFIRMED)
        return order

    @staticmethod
    @retry_on_serialization_failure
    def change_order_state(order_id, target_state, actor=None, notes="", deadline=None) -> Order:
        """
        Moves the order one step forward, or cancels it.

        Items lagging behind the new stage are brought along so the order's
        state keeps agreeing with its items.

        Raises:
            OrderNotFound, OrderAlreadyTerminal, IllegalTransition
        """
        with transaction_scope(deadline=deadline):
            order = OrderService._lock_order(order_id)
            if order.is_terminal:
                raise OrderAlreadyTerminal(order.pk, order.state, target_state)

            try:
                target = OrderState(target_state)
            except ValueError:
                raise IllegalTransition(order.pk, order.state, target_state)

            if not can_transition_order(order.state, target):
                raise IllegalTransition(order.pk, order.state, target)

            previous = OrderService._set_state(order, target, actor=actor, notes=notes)
            moved = OrderService._reconcile_items(order, target, actor=actor)
            if target == OrderState.CANCELADO and moved:
                OrderService._recalculate_total(order)

            OrderService._publish(order, EventType.ORDER_STATE_CHANGED, extra={
                "previous_state": previous,
                "new_state": target,
            })
        return order

    @staticmethod
    @retry_on_serialization_failure
    def delete_order(order_id, actor=None, deadline=None) -> Order:
        """Soft-delete a delivered or cancelled order; active orders are kept."""
        with transaction_scope(deadline=deadline):
            order = OrderService._lock_order(order_id)
            if not order.is_terminal:
                raise OrderNotDeletable(order.pk, order.state)
            if order.is_active:
                order.archive(archived_by=actor, extra_update_fields=["updated_at"])
        logger.info(f"Archived order {order.pk}")
        return order

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @staticmethod
    def get_order(order_id) -> Order:
        try:
            return Order.all_objects.get(pk=order_id)
        except (Order.DoesNotExist, ValueError, ValidationError):
            raise OrderNotFound(order_id)

    @staticmethod
    def get_history(order_id, include_items=False, since=None, until=None):
        """Audit trail of an order, ascending by timestamp then sequence."""
        order = OrderService.get_order(order_id)
        return list(OrderHistoryService.get_history(order, include_items=include_items, since=since, until=until))

    # ------------------------------------------------------------------
    # Internals shared with OrderItemService
    # ------------------------------------------------------------------

    @staticmethod
    def _lock_order(order_id) -> Order:
        try:
            return Order.all_objects.select_for_update().get(pk=order_id)
        except (Order.DoesNotExist, ValueError, ValidationError):
            raise OrderNotFound(order_id)

    @staticmethod
    def _set_state(order, new_state, actor=None, notes=""):
        """Persist ``new_state`` with its stage timestamp and audit entry. Returns the previous state."""
        previous = order.state
        order.state = new_state
        update_fields = ["state", "updated_at"]

        stamp_field = ORDER_STAGE_TIMESTAMPS.get(new_state)
        if stamp_field and getattr(order, stamp_field) is None:
            setattr(order, stamp_field, timezone.now())
            update_fields.append(stamp_field)

        order.save(update_fields=update_fields)
        OrderHistoryService.record_transition(order, previous, new_state, actor=actor, notes=notes)
        logger.info(f"Order {order.pk}: {previous} -> {new_state}")
        return previous

    @staticmethod
    def _set_item_state(item, new_state, actor=None, notes=""):
        previous = item.state
        item.state = new_state
        update_fields = ["state", "updated_at"]

        stamp_field = ITEM_STAGE_TIMESTAMPS.get(new_state)
        if stamp_field and getattr(item, stamp_field) is None:
            setattr(item, stamp_field, timezone.now())
            update_fields.append(stamp_field)

        item.save(update_fields=update_fields)
        OrderHistoryService.record_transition(
            item.order, previous, new_state, actor=actor, notes=notes, order_item=item
        )
        return previous

    @staticmethod
    def _reconcile_items(order, order_state, actor=None):
        """
        Bring items up to ``order_state`` (or cancel them); returns the items moved.

        A lagging item walks through every stage in between, one audit entry
        per step, so item history only ever records legal transitions.
        """
        items = list(OrderItem.all_objects.select_for_update().filter(order=order).order_by("position"))
        notes = f"moved with order to {order_state}"

        if order_state == OrderState.CANCELADO:
            moved = [item for item in items if item.state not in ITEM_TERMINAL_STATES]
            for item in moved:
                item.order = order
                OrderService._set_item_state(item, ItemState.CANCELADO, actor=actor, notes=notes)
            return moved

        floor = ORDER_STAGE_TO_ITEM_FLOOR.get(order_state)
        if floor is None:
            return []

        moved = [
            item for item in items
            if item.state != ItemState.CANCELADO and item_rank(item.state) < item_rank(floor)
        ]
        for item in moved:
            item.order = order
            for step in ITEM_PROGRESSION[item_rank(item.state) + 1:item_rank(floor) + 1]:
                OrderService._set_item_state(item, step, actor=actor, notes=notes)
        return moved

    @staticmethod
    def _recalculate_total(order):
        total = (
            OrderItem.all_objects.filter(order=order)
            .exclude(state=ItemState.CANCELADO)
            .aggregate(total=Sum("subtotal"))["total"]
        )
        order.total_amount = total or Decimal("0.00")
        order.save(update_fields=["total_amount", "updated_at"])

    @staticmethod
    def _publish(order, event_type, extra=None):
        from orders.serializers import OrderSerializer

        payload = {"order": OrderSerializer(order).data}
        if extra:
            payload.update({key: str(value) if value is not None else None for key, value in extra.items()})
        event_broadcaster.publish(order.tenant_id, event_type, payload, order_id=order.pk)
