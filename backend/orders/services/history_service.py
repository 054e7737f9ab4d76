"""
Audit trail for order and item transitions.

Entries are written inside the transaction that applies the transition, so a
rolled-back transition never leaves a history row and a committed one always
has one.
"""
from django.db import transaction
from django.utils import timezone

from orders.models import OrderStateHistory


class OrderHistoryService:
    """Append-only writer/reader for ``OrderStateHistory``."""

    @staticmethod
    def record_transition(order, previous_state, new_state, actor=None, notes="", order_item=None):
        if not transaction.get_connection().in_atomic_block:
            raise RuntimeError("Order history must be written inside the transition's transaction")

        return OrderStateHistory.objects.create(
            order=order,
            order_item=order_item,
            previous_state=previous_state,
            new_state=new_state,
            actor=str(actor) if actor else None,
            notes=notes or "",
            created_at=timezone.now(),
        )

    @staticmethod
    def get_history(order, include_items=False, since=None, until=None):
        """
        Entries for ``order`` ascending by (timestamp, sequence).

        Args:
            include_items: also return item-level entries
            since / until: optional half-open [since, until) time range
        """
        queryset = OrderStateHistory.objects.filter(order=order)
        if not include_items:
            queryset = queryset.filter(order_item__isnull=True)
        if since is not None:
            queryset = queryset.filter(created_at__gte=since)
        if until is not None:
            queryset = queryset.filter(created_at__lt=until)
        return queryset.order_by('created_at', 'id')
