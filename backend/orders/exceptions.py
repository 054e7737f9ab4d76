"""
Order state machine errors.
"""
from rest_framework import status

from core_backend.exceptions import DomainNotFoundError, DomainValidationError


class OrderError(DomainValidationError):
    """Base exception for rejected order operations."""

    code = "order_error"


class IllegalTransition(OrderError):
    """The requested state is not reachable from the current one."""

    code = "illegal_transition"
    http_status = status.HTTP_409_CONFLICT

    def __init__(self, entity_id, current_state, target_state, entity="order", message=None):
        self.entity_id = entity_id
        self.entity = entity
        self.current_state = current_state
        self.target_state = target_state
        if message is None:
            message = f"Cannot transition {entity} from {current_state} to {target_state}."
        super().__init__(
            message,
            details={
                "entity": entity,
                "id": str(entity_id),
                "current_state": str(current_state),
                "target_state": str(target_state),
            },
        )


class OrderAlreadyTerminal(IllegalTransition):
    code = "order_already_terminal"

    def __init__(self, order_id, current_state, target_state, message=None):
        if message is None:
            message = f"Order is already {current_state}; no further transitions are allowed."
        super().__init__(order_id, current_state, target_state, entity="order", message=message)


class ItemUnavailable(OrderError):
    """A referenced menu item or add-on does not exist or cannot be ordered right now."""

    code = "item_unavailable"
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, menu_item_ids=None, add_on_ids=None, message=None):
        self.menu_item_ids = list(menu_item_ids or [])
        self.add_on_ids = list(add_on_ids or [])
        if message is None:
            message = "Some items are not available"
        super().__init__(
            message,
            details={
                "menu_item_ids": [str(pk) for pk in self.menu_item_ids],
                "add_on_ids": [str(pk) for pk in self.add_on_ids],
            },
        )


class OrdersDisabled(OrderError):
    code = "orders_disabled"
    default_message = "This restaurant is not accepting orders."
    http_status = status.HTTP_409_CONFLICT


class EmptyOrder(OrderError):
    code = "empty_order"
    default_message = "An order needs at least one item."
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY


class InvalidQuantity(OrderError):
    code = "invalid_quantity"
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, menu_item_id, quantity, message=None):
        self.menu_item_id = menu_item_id
        self.quantity = quantity
        super().__init__(
            message or f"Quantity must be at least 1 (got {quantity})",
            details={"menu_item_id": str(menu_item_id), "quantity": quantity},
        )


class OrderNotDeletable(OrderError):
    code = "order_not_deletable"
    http_status = status.HTTP_409_CONFLICT

    def __init__(self, order_id, current_state, message=None):
        self.order_id = order_id
        self.current_state = current_state
        super().__init__(
            message or f"Only delivered or cancelled orders can be deleted (order is {current_state})",
            details={"id": str(order_id), "current_state": str(current_state)},
        )


class OrderNotFound(DomainNotFoundError):
    code = "order_not_found"

    def __init__(self, order_id, message=None):
        self.order_id = order_id
        super().__init__(message or f"Order {order_id} not found", details={"id": str(order_id)})


class OrderItemNotFound(DomainNotFoundError):
    code = "order_item_not_found"

    def __init__(self, item_id, message=None):
        self.item_id = item_id
        super().__init__(message or f"Order item {item_id} not found", details={"id": str(item_id)})
