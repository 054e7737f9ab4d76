"""
Realtime Consumer Tests

WebSocket listeners for a restaurant or a single order.
"""
import uuid

import pytest
from asgiref.sync import sync_to_async
from channels.routing import URLRouter
from channels.testing import WebsocketCommunicator

from notifications.routing import websocket_urlpatterns
from notifications.services import EventType, event_broadcaster

application = URLRouter(websocket_urlpatterns)


@pytest.mark.asyncio
@pytest.mark.django_db(transaction=True)
class TestRealtimeConsumer:

    async def test_restaurant_listener_receives_events(self, tenant_a):
        communicator = WebsocketCommunicator(application, f"/ws/restaurants/{tenant_a.id}/")
        connected, _ = await communicator.connect()
        assert connected

        welcome = await communicator.receive_json_from()
        assert welcome["type"] == "connection_established"
        assert welcome["group"] == f"restaurant_{tenant_a.id}"

        await sync_to_async(event_broadcaster.publish)(
            tenant_a.id, EventType.ORDER_CREATED, {"id": "o1", "state": "pendiente_confirmacion"}
        )

        event = await communicator.receive_json_from(timeout=2)
        assert event["type"] == "event"
        assert event["event"] == EventType.ORDER_CREATED
        assert event["restaurant_id"] == str(tenant_a.id)
        assert event["data"]["state"] == "pendiente_confirmacion"

        await communicator.disconnect()

    async def test_ping_pong(self, tenant_a):
        communicator = WebsocketCommunicator(application, f"/ws/restaurants/{tenant_a.id}/")
        await communicator.connect()
        await communicator.receive_json_from()

        await communicator.send_json_to({"type": "ping"})
        response = await communicator.receive_json_from()
        assert response["type"] == "pong"

        await communicator.send_to(text_data="not json")
        assert await communicator.receive_nothing()

        await communicator.disconnect()

    async def test_unknown_restaurant_refused(self, db):
        communicator = WebsocketCommunicator(application, f"/ws/restaurants/{uuid.uuid4()}/")
        connected, code = await communicator.connect()

        assert not connected
        assert code == 4004

    async def test_inactive_restaurant_refused(self, inactive_tenant):
        communicator = WebsocketCommunicator(application, f"/ws/restaurants/{inactive_tenant.id}/")
        connected, _ = await communicator.connect()

        assert not connected

    async def test_order_listener_only_gets_its_order(self, tenant_a):
        from orders.models import Order

        order = await sync_to_async(Order.all_objects.create)(tenant=tenant_a)
        communicator = WebsocketCommunicator(application, f"/ws/orders/{order.pk}/")
        connected, _ = await communicator.connect()
        assert connected
        await communicator.receive_json_from()

        await sync_to_async(event_broadcaster.publish)(
            tenant_a.id, EventType.ORDER_STATE_CHANGED, {"id": "other"}, order_id=uuid.uuid4()
        )
        assert await communicator.receive_nothing()

        await sync_to_async(event_broadcaster.publish)(
            tenant_a.id, EventType.ORDER_STATE_CHANGED, {"id": str(order.pk)}, order_id=order.pk
        )
        event = await communicator.receive_json_from(timeout=2)
        assert event["data"]["id"] == str(order.pk)

        await communicator.disconnect()
