"""
WebSocket consumer tests.

Connections are driven with channels' WebsocketCommunicator against the
in-memory channel layer configured by the root conftest.
"""
import pytest
from asgiref.sync import sync_to_async
from channels.layers import get_channel_layer
from channels.testing import WebsocketCommunicator
from django.contrib.auth.models import AnonymousUser
from rest_framework_simplejwt.tokens import AccessToken

from notifications.consumers import NotificationConsumer
from notifications.middleware import JWTAuthMiddleware
from notifications.services import KITCHEN_GROUP, notification_service, user_group

WS_PATH = "/ws/notifications/"


async def connect_as(user):
    communicator = WebsocketCommunicator(NotificationConsumer.as_asgi(), WS_PATH)
    communicator.scope["user"] = user
    connected, _ = await communicator.connect()
    return communicator, connected


@pytest.mark.asyncio
@pytest.mark.django_db(transaction=True)
class TestNotificationConsumer:
    async def test_anonymous_rejected(self):
        communicator, connected = await connect_as(AnonymousUser())
        assert not connected

    async def test_connect_and_ping(self, customer):
        communicator, connected = await connect_as(customer)
        assert connected

        message = await communicator.receive_json_from()
        assert message == {"type": "connection_established", "user_id": str(customer.id)}

        await communicator.send_json_to({"type": "ping"})
        assert await communicator.receive_json_from() == {"type": "pong"}
        await communicator.disconnect()

    async def test_kitchen_receives_new_orders(self, kitchen_staff, pending_order):
        communicator, _ = await connect_as(kitchen_staff)
        await communicator.receive_json_from()

        await sync_to_async(notification_service.order_created)(pending_order)

        message = await communicator.receive_json_from()
        assert message["type"] == "order.created"
        assert message["data"]["order_id"] == str(pending_order.id)
        await communicator.disconnect()

    async def test_customer_not_in_kitchen_group(self, customer):
        communicator, _ = await connect_as(customer)
        await communicator.receive_json_from()

        await get_channel_layer().group_send(
            KITCHEN_GROUP, {"type": "pos.notification", "event": "order.created", "data": {}}
        )
        assert await communicator.receive_nothing()
        await communicator.disconnect()

    async def test_subscribe_to_own_order(self, customer, pending_order):
        communicator, _ = await connect_as(customer)
        await communicator.receive_json_from()

        await communicator.send_json_to({"type": "subscribe_order", "order_id": str(pending_order.id)})
        assert await communicator.receive_json_from() == {
            "type": "subscribed",
            "order_id": str(pending_order.id),
        }

        await sync_to_async(notification_service.order_status_changed)(pending_order, "pending")
        # Delivered through both the order group and the user group
        first = await communicator.receive_json_from()
        second = await communicator.receive_json_from()
        assert first["type"] == second["type"] == "order.status_changed"
        await communicator.disconnect()

    async def test_cannot_subscribe_to_other_customers_order(self, other_customer, pending_order):
        communicator, _ = await connect_as(other_customer)
        await communicator.receive_json_from()

        await communicator.send_json_to({"type": "subscribe_order", "order_id": str(pending_order.id)})
        assert await communicator.receive_json_from() == {"type": "error", "message": "Order not found"}
        await communicator.disconnect()

    async def test_disconnect_leaves_groups(self, customer):
        communicator, _ = await connect_as(customer)
        await communicator.receive_json_from()
        await communicator.disconnect()

        layer = get_channel_layer()
        assert not layer.groups.get(user_group(customer.id))


@pytest.mark.asyncio
@pytest.mark.django_db(transaction=True)
class TestJWTAuthMiddleware:
    async def run(self, query_string):
        captured = {}

        async def inner(scope, receive, send):
            captured["user"] = scope.get("user")

        scope = {"type": "websocket", "query_string": query_string, "user": AnonymousUser()}
        await JWTAuthMiddleware(inner)(scope, None, None)
        return captured["user"]

    async def test_valid_token(self, customer):
        token = await sync_to_async(AccessToken.for_user)(customer)
        user = await self.run(f"token={token}".encode())
        assert user.id == customer.id

    async def test_invalid_token(self, db):
        user = await self.run(b"token=not-a-jwt")
        assert not user.is_authenticated

    async def test_no_token_keeps_scope_user(self):
        user = await self.run(b"")
        assert isinstance(user, AnonymousUser)
