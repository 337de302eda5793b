"""
Notification sink for order and payment events.

Events are pushed to Channels groups; WebSocket clients join those groups in
notifications.consumers. Delivery is fire and forget: a failing channel layer
is logged and never surfaces to the caller.
"""
from datetime import datetime
from decimal import Decimal
from uuid import UUID
import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

logger = logging.getLogger(__name__)

KITCHEN_GROUP = "kitchen"
MESSAGE_TYPE = "pos.notification"


def user_group(user_id):
    return f"user_{user_id}"


def order_group(order_id):
    return f"order_{order_id}"


def role_group(role):
    return f"role_{role}"


def convert_payload_to_str(data):
    """
    Recursively converts UUID, Decimal and datetime values to strings so the
    payload survives the channel layer's msgpack/JSON encoding.
    """
    if isinstance(data, dict):
        return {k: convert_payload_to_str(v) for k, v in data.items()}
    elif isinstance(data, (list, tuple)):
        return [convert_payload_to_str(elem) for elem in data]
    elif isinstance(data, (UUID, Decimal)):
        return str(data)
    elif isinstance(data, datetime):
        return data.isoformat()
    return data


class NotificationService:
    """
    Singleton wrapper around the channel layer.
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def notify(self, channel, event, payload):
        """Send ``event`` with ``payload`` to one group. Never raises."""
        channel_layer = get_channel_layer()
        if not channel_layer:
            logger.warning(f"Channel layer not available. Dropping {event} for {channel}.")
            return False

        message = {
            "type": MESSAGE_TYPE,
            "event": event,
            "data": convert_payload_to_str(payload),
        }
        try:
            async_to_sync(channel_layer.group_send)(channel, message)
        except Exception as e:
            logger.error(f"Failed to send {event} to {channel}: {e}")
            return False

        logger.debug(f"Sent {event} to {channel}")
        return True

    def notify_many(self, channels, event, payload):
        for channel in channels:
            self.notify(channel, event, payload)

    # Order and payment events

    def order_created(self, order):
        payload = self._order_payload(order)
        self.notify_many([KITCHEN_GROUP, user_group(order.user_id)], "order.created", payload)

    def order_status_changed(self, order, previous_status):
        payload = self._order_payload(order)
        payload["previous_status"] = previous_status
        self.notify_many(
            [order_group(order.id), user_group(order.user_id), KITCHEN_GROUP],
            "order.status_changed",
            payload,
        )

    def payment_event(self, order, event):
        payload = self._order_payload(order)
        payload["payment_status"] = order.payment_status
        channels = [user_group(order.user_id), order_group(order.id)]
        if event == "payment.completed":
            channels.append(KITCHEN_GROUP)
        self.notify_many(channels, event, payload)

    @staticmethod
    def _order_payload(order):
        return {
            "order_id": order.id,
            "order_number": order.order_number,
            "status": order.status,
            "order_type": order.order_type,
            "total": order.total,
            "estimated_prep_time": order.estimated_prep_time,
            "updated_at": order.updated_at,
        }


notification_service = NotificationService()
