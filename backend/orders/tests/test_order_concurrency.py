"""
Concurrent Order Transition Tests

Two staff devices racing on the same order must not both succeed: every
transition reads the current state and applies its check while holding the
order row lock.
"""
from threading import Barrier, Thread

import pytest
from django.db import connection

from orders.exceptions import IllegalTransition
from orders.models import OrderItem, OrderStateHistory
from orders.services import OrderItemService, OrderService
from orders.states import ItemState, OrderState
from tenant.managers import set_current_tenant


pytestmark = pytest.mark.concurrency


def run_concurrently(tenant, calls):
    """Start every call at the same moment in its own thread; collect outcomes."""
    barrier = Barrier(len(calls))
    results = []
    errors = []

    def worker(index, call):
        try:
            set_current_tenant(tenant)
            barrier.wait()
            results.append((index, call()))
        except Exception as e:
            errors.append((index, e))
        finally:
            connection.close()

    threads = [Thread(target=worker, args=(i, call)) for i, call in enumerate(calls)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    return results, errors


@pytest.mark.django_db(transaction=True)
class TestConcurrentOrderTransitions:

    def test_double_confirmation_only_one_wins(self, tenant_a, menu_item_tenant_a):
        """
        Scenario: waiter app and manager dashboard confirm the same order at once.
        Expected: exactly one confirmation; the other sees IllegalTransition.
        """
        order = OrderService.create_order(tenant_a, [{"menu_item_id": menu_item_tenant_a.pk}])

        results, errors = run_concurrently(tenant_a, [
            lambda: OrderService.confirm_order(order.pk, actor="waiter"),
            lambda: OrderService.confirm_order(order.pk, actor="manager"),
        ])

        assert len(results) == 1, f"Expected one confirmation, got {results}. Errors: {errors}"
        assert len(errors) == 1
        assert isinstance(errors[0][1], IllegalTransition)

        confirmations = OrderStateHistory.objects.filter(order_id=order.pk, new_state=OrderState.CONFIRMADO)
        assert confirmations.count() == 1

    def test_cancel_races_with_progress(self, tenant_a, menu_item_tenant_a):
        """
        Scenario: kitchen advances the order while the waiter cancels it.
        Expected: the order ends cancelado either way. If the cancel committed
        first the progress request is rejected; otherwise both apply in turn.
        """
        order = OrderService.create_order(tenant_a, [{"menu_item_id": menu_item_tenant_a.pk}])
        OrderService.confirm_order(order.pk)

        results, errors = run_concurrently(tenant_a, [
            lambda: OrderService.change_order_state(order.pk, OrderState.EN_PREPARACION),
            lambda: OrderService.change_order_state(order.pk, OrderState.CANCELADO),
        ])

        assert len(results) + len(errors) == 2
        order.refresh_from_db()
        history = OrderService.get_history(order.pk)
        assert history[-1].new_state == order.state

        assert order.state == OrderState.CANCELADO
        if len(results) == 1:
            assert isinstance(errors[0][1], IllegalTransition)
            assert [entry.new_state for entry in history][-2:] == [OrderState.CONFIRMADO, OrderState.CANCELADO]
        else:
            assert [entry.new_state for entry in history][-2:] == [OrderState.EN_PREPARACION, OrderState.CANCELADO]

    def test_parallel_item_updates_are_serialized(self, tenant_a, menu_item_tenant_a, second_menu_item_tenant_a):
        """
        Scenario: two kitchen stations start different items of one order at once.
        Expected: both succeed and the order is en_preparacion exactly once in history.
        """
        order = OrderService.create_order(tenant_a, [
            {"menu_item_id": menu_item_tenant_a.pk},
            {"menu_item_id": second_menu_item_tenant_a.pk},
        ])
        OrderService.confirm_order(order.pk)
        item_ids = list(OrderItem.all_objects.filter(order=order).values_list("pk", flat=True))

        results, errors = run_concurrently(tenant_a, [
            lambda item_id=item_id: OrderItemService.change_item_state(item_id, ItemState.PREPARANDO)
            for item_id in item_ids
        ])

        assert errors == []
        assert len(results) == 2
        order.refresh_from_db()
        assert order.state == OrderState.EN_PREPARACION
        assert OrderStateHistory.objects.filter(
            order_id=order.pk, order_item__isnull=True, new_state=OrderState.EN_PREPARACION
        ).count() == 1
