import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer

from .services import KITCHEN_GROUP, order_group, role_group, user_group

logger = logging.getLogger(__name__)


class NotificationConsumer(AsyncJsonWebsocketConsumer):
    """
    Per-connection registry entry for an authenticated user.

    On connect the socket joins its user group, its role group and, for
    kitchen staff and admins, the kitchen group. Order groups are joined on
    request. Every group joined is left again on disconnect.
    """

    async def connect(self):
        user = self.scope.get("user")
        if user is None or not user.is_authenticated:
            logger.warning("NotificationConsumer: unauthenticated connection rejected")
            await self.close(code=4001)
            return

        self.user = user
        self.joined_groups = set()

        await self._join(user_group(user.id))
        await self._join(role_group(user.role))
        if user.role in ("kitchen_staff", "admin"):
            await self._join(KITCHEN_GROUP)

        await self.accept()
        await self.send_json({"type": "connection_established", "user_id": str(user.id)})
        logger.info(f"User {user.id} connected to notifications")

    async def disconnect(self, close_code):
        for group in getattr(self, "joined_groups", set()):
            await self.channel_layer.group_discard(group, self.channel_name)
        if hasattr(self, "user"):
            logger.info(f"User {self.user.id} disconnected from notifications")

    async def receive_json(self, content, **kwargs):
        message_type = content.get("type")

        if message_type == "ping":
            await self.send_json({"type": "pong"})
        elif message_type == "subscribe_order":
            order_id = content.get("order_id")
            if order_id and await self._can_follow_order(order_id):
                await self._join(order_group(order_id))
                await self.send_json({"type": "subscribed", "order_id": order_id})
            else:
                await self.send_json({"type": "error", "message": "Order not found"})
        elif message_type == "unsubscribe_order":
            group = order_group(content.get("order_id"))
            if group in self.joined_groups:
                await self.channel_layer.group_discard(group, self.channel_name)
                self.joined_groups.discard(group)
        else:
            logger.warning(f"Unknown message type from user {self.user.id}: {message_type}")

    async def pos_notification(self, event):
        """Handler for the pos.notification messages sent by NotificationService."""
        await self.send_json({"type": event["event"], "data": event["data"]})

    async def _join(self, group):
        await self.channel_layer.group_add(group, self.channel_name)
        self.joined_groups.add(group)

    @database_sync_to_async
    def _can_follow_order(self, order_id):
        from django.core.exceptions import ValidationError
        from orders.models import Order

        try:
            order = Order.objects.only("id", "user_id").get(pk=order_id)
        except (Order.DoesNotExist, ValidationError, ValueError):
            return False
        return order.user_id == self.user.id or self.user.role in ("kitchen_staff", "admin")
