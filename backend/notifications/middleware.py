"""
JWT WebSocket Authentication Middleware for Django Channels.

Authenticates WebSocket connections with a simplejwt access token passed as
the ``token`` query parameter, so API clients can open the notification
socket with the same token they use for HTTP. Connections without a token
keep whatever user the session middleware resolved.
"""
from urllib.parse import parse_qs
import logging

from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from django.contrib.auth.models import AnonymousUser
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import AccessToken

from users.models import User

logger = logging.getLogger(__name__)


class JWTAuthMiddleware(BaseMiddleware):
    """
    Replaces ``scope["user"]`` with the token's user when a ``token`` query
    parameter is present. An invalid or expired token yields AnonymousUser.
    """

    async def __call__(self, scope, receive, send):
        # Only process WebSocket connections
        if scope["type"] != "websocket":
            return await super().__call__(scope, receive, send)

        token = self.get_token(scope)
        if token:
            scope = dict(scope)
            scope["user"] = await self.get_user_from_jwt(token)

        return await super().__call__(scope, receive, send)

    @staticmethod
    def get_token(scope):
        query = parse_qs(scope.get("query_string", b"").decode("utf-8"))
        values = query.get("token")
        return values[0] if values else None

    async def get_user_from_jwt(self, raw_token):
        try:
            token = AccessToken(raw_token)
        except TokenError as e:
            logger.warning(f"Invalid JWT token in WebSocket connection: {e}")
            return AnonymousUser()

        user_id = token.get("user_id")
        if not user_id:
            logger.warning("JWT payload missing user_id")
            return AnonymousUser()

        try:
            user = await database_sync_to_async(User.objects.get)(id=user_id, is_active=True)
        except User.DoesNotExist:
            logger.warning(f"User {user_id} from JWT not found")
            return AnonymousUser()

        logger.info(f"WebSocket authenticated: user_id={user.id}, role={user.role}")
        return user
