import logging

from core_backend.transactions import retry_on_serialization_failure, transaction_scope
from notifications.services import EventType
from orders.exceptions import IllegalTransition, OrderAlreadyTerminal, OrderItemNotFound
from orders.models import Order, OrderItem
from orders.states import ItemState, OrderState, can_transition_item, derive_order_state

from .order_service import OrderService

logger = logging.getLogger(__name__)


class OrderItemService:
    """Item-level transitions and the order state they imply."""

    @staticmethod
    @retry_on_serialization_failure
    def change_item_state(item_id, target_state, actor=None, notes="", deadline=None) -> Order:
        """
        Moves one item a step forward (or cancels it), then re-derives the
        order's overall state from all of its items.

        The parent order row is locked first, so concurrent updates to items
        of the same order are applied one at a time.

        Returns:
            The parent order, with its possibly updated state.

        Raises:
            OrderItemNotFound, OrderAlreadyTerminal, IllegalTransition
        """
        with transaction_scope(deadline=deadline):
            try:
                order_id = OrderItem.all_objects.filter(pk=item_id).values_list("order_id", flat=True).first()
            except ValueError:
                order_id = None
            if order_id is None:
                raise OrderItemNotFound(item_id)

            order = OrderService._lock_order(order_id)
            item = OrderItem.all_objects.select_for_update().get(pk=item_id)
            item.order = order

            if order.is_terminal:
                raise OrderAlreadyTerminal(order.pk, order.state, target_state)

            try:
                target = ItemState(target_state)
            except ValueError:
                raise IllegalTransition(item.pk, item.state, target_state, entity="item")

            if order.state == OrderState.PENDIENTE_CONFIRMACION and target != ItemState.CANCELADO:
                raise IllegalTransition(
                    item.pk,
                    item.state,
                    target,
                    entity="item",
                    message="Order must be confirmed before its items can be prepared.",
                )

            if not can_transition_item(item.state, target):
                raise IllegalTransition(item.pk, item.state, target, entity="item")

            previous_item_state = OrderService._set_item_state(item, target, actor=actor, notes=notes)
            if target == ItemState.CANCELADO:
                OrderService._recalculate_total(order)

            previous_order_state = order.state
            item_states = OrderItem.all_objects.filter(order=order).values_list("state", flat=True)
            derived = derive_order_state(order.state, item_states)
            if derived != order.state:
                OrderService._set_state(order, derived, actor=actor, notes="derived from item states")

            OrderService._publish(order, EventType.ORDER_ITEM_STATE_CHANGED, extra={
                "item_id": item.pk,
                "previous_state": previous_item_state,
                "new_state": target,
            })
            if derived != previous_order_state:
                OrderService._publish(order, EventType.ORDER_STATE_CHANGED, extra={
                    "previous_state": previous_order_state,
                    "new_state": derived,
                })

        logger.info(f"Order item {item.pk}: {previous_item_state} -> {target} (order {order.pk} is {order.state})")
        return order
