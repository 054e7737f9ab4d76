import logging

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.request import Request
from rest_framework.response import Response

from orders.filters import OrderFilter
from orders.models import Order, OrderItem
from orders.serializers import (
    ConfirmOrderSerializer,
    ItemStateChangeSerializer,
    OrderCreateSerializer,
    OrderSerializer,
    OrderStateChangeSerializer,
    OrderStateHistorySerializer,
)
from orders.services import OrderItemService, OrderService

logger = logging.getLogger(__name__)


class OrderViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    Orders of one restaurant. The restaurant comes from the URL and is
    resolved by ``TenantMiddleware``; every write goes through
    ``OrderService``.
    """

    serializer_class = OrderSerializer
    filter_backends = [DjangoFilterBackend]
    filterset_class = OrderFilter

    def get_queryset(self):
        # Re-evaluated per request so the tenant context of this request applies
        return Order.objects.filter(is_active=True).select_related("table")

    def create(self, request: Request, restaurant_id=None) -> Response:
        serializer = OrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        order = OrderService.create_order(
            tenant=request.tenant,
            items=data["items"],
            table_id=data["table_id"],
            actor=request.actor_id,
            customer_name=data["customer_name"],
            customer_phone=data["customer_phone"],
            customer_email=data["customer_email"],
            notes=data["notes"],
            waiter_id=data["waiter_id"],
        )
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    def destroy(self, request: Request, restaurant_id=None, pk=None) -> Response:
        order = self.get_object()
        OrderService.delete_order(order.pk, actor=request.actor_id)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"], url_path="confirm")
    def confirm(self, request: Request, restaurant_id=None, pk=None) -> Response:
        order = self.get_object()
        serializer = ConfirmOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = OrderService.confirm_order(order.pk, actor=request.actor_id, notes=serializer.validated_data["notes"])
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"], url_path="state")
    def change_state(self, request: Request, restaurant_id=None, pk=None) -> Response:
        order = self.get_object()
        serializer = OrderStateChangeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = OrderService.change_order_state(
            order.pk,
            serializer.validated_data["state"],
            actor=request.actor_id,
            notes=serializer.validated_data["notes"],
        )
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["get"], url_path="history")
    def history(self, request: Request, restaurant_id=None, pk=None) -> Response:
        order = self.get_object()
        include_items = request.query_params.get("include_items", "").lower() in ("1", "true", "yes")
        entries = OrderService.get_history(order.pk, include_items=include_items)
        return Response(OrderStateHistorySerializer(entries, many=True).data)


class OrderItemViewSet(viewsets.ViewSet):
    """Item-level transitions, used by the kitchen display."""

    lookup_value_regex = r"\d+"

    @action(detail=True, methods=["post"], url_path="state")
    def change_state(self, request: Request, restaurant_id=None, pk=None) -> Response:
        if not OrderItem.objects.filter(pk=pk).exists():
            raise NotFound(f"Order item {pk} not found")

        serializer = ItemStateChangeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = OrderItemService.change_item_state(
            pk,
            serializer.validated_data["state"],
            actor=request.actor_id,
            notes=serializer.validated_data["notes"],
        )
        return Response(OrderSerializer(order).data)
