import json
import logging
from datetime import datetime, timezone as dt_timezone

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer
from django.core.exceptions import ValidationError
from django.core.serializers.json import DjangoJSONEncoder

from .services import order_group, restaurant_group

logger = logging.getLogger(__name__)


class RealtimeConsumer(AsyncWebsocketConsumer):
    """
    Live order / reservation events.

    ``ws/restaurants/<restaurant_id>/`` joins the restaurant group (kitchen
    display, waiter app); ``ws/orders/<order_id>/`` joins a single order's
    group (customer tracking page). Unknown ids are refused with 4004.
    """

    async def connect(self):
        kwargs = self.scope["url_route"]["kwargs"]
        self.group_name = None

        if "restaurant_id" in kwargs:
            target_id = kwargs["restaurant_id"]
            exists = await self.restaurant_exists(target_id)
            group_name = restaurant_group(target_id)
        else:
            target_id = kwargs["order_id"]
            exists = await self.order_exists(target_id)
            group_name = order_group(target_id)

        if not exists:
            logger.warning(f"RealtimeConsumer: unknown target {target_id}. Closing connection.")
            await self.close(code=4004)
            return

        self.group_name = group_name
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()

        logger.info(f"Realtime listener joined {self.group_name}")
        await self.send_json({
            "type": "connection_established",
            "group": self.group_name,
            "timestamp": self.get_timestamp(),
        })

    async def disconnect(self, close_code):
        if self.group_name:
            await self.channel_layer.group_discard(self.group_name, self.channel_name)
            logger.info(f"Realtime listener left {self.group_name} ({close_code})")

    async def receive(self, text_data=None, bytes_data=None):
        """Clients only send keep-alive pings; everything else is ignored."""
        try:
            data = json.loads(text_data or "")
        except json.JSONDecodeError:
            logger.warning(f"Invalid JSON received on {self.group_name}")
            return

        if isinstance(data, dict) and data.get("type") == "ping":
            await self.send_json({"type": "pong", "timestamp": self.get_timestamp()})
        else:
            logger.debug(f"Ignoring client message on {self.group_name}")

    # Channel layer handlers

    async def realtime_event(self, event):
        await self.send_json({
            "type": "event",
            "event": event["event"],
            "restaurant_id": event["restaurant_id"],
            "data": event["data"],
            "timestamp": event["timestamp"],
        })

    # Helpers

    async def send_json(self, content):
        await self.send(text_data=json.dumps(content, cls=DjangoJSONEncoder))

    @database_sync_to_async
    def restaurant_exists(self, restaurant_id):
        from tenant.models import Tenant

        try:
            return Tenant.objects.filter(pk=restaurant_id, is_active=True).exists()
        except (ValidationError, ValueError):
            return False

    @database_sync_to_async
    def order_exists(self, order_id):
        from orders.models import Order

        try:
            return Order.all_objects.filter(pk=order_id).exists()
        except (ValidationError, ValueError):
            return False

    @staticmethod
    def get_timestamp():
        return datetime.now(dt_timezone.utc).isoformat()
