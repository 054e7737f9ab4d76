from datetime import datetime, timezone as dt_timezone
from typing import Any, Dict, Optional
import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.conf import settings
from django.db import transaction

logger = logging.getLogger(__name__)


class EventType:
    """Event names delivered to real-time listeners."""

    ORDER_CREATED = "order.created"
    ORDER_CONFIRMED = "order.confirmed"
    ORDER_STATE_CHANGED = "order.state_changed"
    ORDER_ITEM_STATE_CHANGED = "order.item_state_changed"
    RESERVATION_CREATED = "reservation.created"
    RESERVATION_CONFIRMED = "reservation.confirmed"
    RESERVATION_CANCELLED = "reservation.cancelled"
    RESERVATION_UPDATED = "reservation.updated"


def sanitize_group_name(name: str) -> str:
    """Channels group names allow only ASCII alphanumerics, hyphens, underscores and periods."""
    return ''.join(c if c.isalnum() or c in '-_.' else '_' for c in name)


def restaurant_group(restaurant_id) -> str:
    prefix = getattr(settings, 'REALTIME_GROUP_PREFIX', 'restaurant')
    return sanitize_group_name(f"{prefix}_{restaurant_id}")


def order_group(order_id) -> str:
    return sanitize_group_name(f"order_{order_id}")


class EventBroadcaster:
    """
    Fans state changes out to the kitchen display, waiter app and customer
    tracker through the channel layer.

    Delivery is best-effort and strictly post-commit: inside a transaction the
    send is deferred with ``transaction.on_commit`` so a rolled-back change is
    never announced, and channel-layer failures are logged and dropped. The
    channel layer keeps one bounded queue per connection, so a slow listener
    only loses its own messages.
    """

    def __init__(self, channel_layer=None):
        self.channel_layer = channel_layer if channel_layer is not None else get_channel_layer()

    def publish(self, restaurant_id, event_type: str, payload: Dict[str, Any], order_id: Optional[Any] = None):
        """Publish ``event_type`` to every listener of ``restaurant_id`` (and of ``order_id``)."""
        groups = [restaurant_group(restaurant_id)]
        if order_id is not None:
            groups.append(order_group(order_id))

        message = {
            'type': 'realtime.event',
            'event': event_type,
            'restaurant_id': str(restaurant_id),
            'data': payload,
            'timestamp': self._get_timestamp(),
        }

        try:
            if transaction.get_connection().in_atomic_block:
                logger.debug(f"Deferring {event_type} for restaurant {restaurant_id} until commit")
                transaction.on_commit(lambda: self._send(groups, message))
            else:
                self._send(groups, message)
        except Exception as e:
            logger.error(f"Error publishing {event_type} for restaurant {restaurant_id}: {e}")

    def _send(self, groups, message):
        if not self.channel_layer:
            logger.warning("No channel layer available for real-time events")
            return

        for group_name in groups:
            try:
                async_to_sync(self.channel_layer.group_send)(group_name, message)
                logger.debug(f"Sent {message['event']} to {group_name}")
            except Exception as e:
                logger.error(f"Error sending {message['event']} to {group_name}: {e}")

    @staticmethod
    def _get_timestamp():
        return datetime.now(dt_timezone.utc).isoformat()


event_broadcaster = EventBroadcaster()
