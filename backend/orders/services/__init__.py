"""
Orders services package.

- OrderService: order lifecycle (create, confirm, change state, delete, history)
- OrderItemService: item-level transitions and the derived order state
- OrderHistoryService: append-only audit trail of order and item transitions
"""

from .history_service import OrderHistoryService
from .order_service import OrderService
from .item_service import OrderItemService

__all__ = [
    'OrderService',
    'OrderItemService',
    'OrderHistoryService',
]
