"""
Cart API views for customer-facing cart operations.

Handles both authenticated users and guest sessions. Guests identify their
cart with the ``X-Session-ID`` header.
"""

from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import AllowAny
import logging

from core_backend.exceptions import InvalidOwner
from orders.serializers import OrderSerializer
from orders.services import OrderService
from .models import Cart
from .serializers import (
    CartSerializer,
    AddToCartSerializer,
    UpdateCartItemSerializer,
    CartSettingsSerializer,
    CheckoutSerializer,
)
from .services import CartService

logger = logging.getLogger(__name__)

SESSION_HEADER = "HTTP_X_SESSION_ID"


class CartViewSet(viewsets.ViewSet):
    """
    ViewSet for cart operations.

    Endpoints:
    - GET /api/cart/ - Retrieve current cart
    - POST /api/cart/items/ - Add item to cart
    - PATCH /api/cart/items/{item_id}/ - Update item quantity or instructions
    - DELETE /api/cart/items/{item_id}/ - Remove item from cart
    - PATCH /api/cart/settings/ - Order type, delivery address, instructions
    - DELETE /api/cart/clear/ - Clear all items
    - POST /api/cart/checkout/ - Convert cart to order (authenticated only)
    """

    permission_classes = [AllowAny]  # Ownership is checked in CartService

    def _owner(self, request):
        user = request.user if request.user.is_authenticated else None
        session_id = request.META.get(SESSION_HEADER) or None
        return user, session_id

    def _get_or_create_cart(self, request) -> Cart:
        user, session_id = self._owner(request)
        if user is None and not session_id:
            raise InvalidOwner("Sign in or send an X-Session-ID header.")
        return CartService.find_or_create(user=user, session_id=session_id)

    def _respond(self, cart, status_code=status.HTTP_200_OK):
        cart = Cart.objects.prefetch_related("items").get(pk=cart.pk)
        return Response(CartSerializer(cart).data, status=status_code)

    def retrieve(self, request):
        """
        GET /api/cart/

        Retrieve the current cart with all items and totals.
        """
        return self._respond(self._get_or_create_cart(request))

    @action(detail=False, methods=["post"], url_path="items")
    def add_item(self, request):
        serializer = AddToCartSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        cart = CartService.add_item(
            self._get_or_create_cart(request),
            data["menu_item_id"],
            quantity=data["quantity"],
            customizations=data["customizations"],
            special_instructions=data["special_instructions"],
        )
        return self._respond(cart, status.HTTP_201_CREATED)

    def update_item(self, request, item_id=None):
        serializer = UpdateCartItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user, session_id = self._owner(request)
        cart = self._get_or_create_cart(request)
        cart = CartService.update_item(
            cart.id, item_id, serializer.validated_data, user=user, session_id=session_id
        )
        return self._respond(cart)

    def remove_item(self, request, item_id=None):
        user, session_id = self._owner(request)
        cart = self._get_or_create_cart(request)
        cart = CartService.remove_item(cart.id, item_id, user=user, session_id=session_id)
        return self._respond(cart)

    @action(detail=False, methods=["patch"], url_path="settings")
    def update_settings(self, request):
        serializer = CartSettingsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user, session_id = self._owner(request)
        cart = self._get_or_create_cart(request)
        cart = CartService.update_settings(
            cart.id, serializer.validated_data, user=user, session_id=session_id
        )
        return self._respond(cart)

    @action(detail=False, methods=["delete"])
    def clear(self, request):
        user, session_id = self._owner(request)
        cart = self._get_or_create_cart(request)
        cart = CartService.clear(cart.id, user=user, session_id=session_id)
        return self._respond(cart)

    @action(detail=False, methods=["post"])
    def checkout(self, request):
        """
        POST /api/cart/checkout/

        Converts the cart into a PENDING order and deletes the cart.
        """
        serializer = CheckoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        cart = self._get_or_create_cart(request)
        order = CartService.checkout(
            cart.id,
            request.user,
            tip=data.get("tip"),
            loyalty_points_to_use=data.get("loyalty_points_to_use", 0),
            scheduled_for=data.get("scheduled_for"),
        )
        order = OrderService.find_by_id(order.id)
        return Response(
            OrderSerializer(order, context={"request": request}).data,
            status=status.HTTP_201_CREATED,
        )
