import logging

from django.utils.decorators import method_decorator
from django_ratelimit.decorators import ratelimit
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response

from users.permissions import IsAdmin, IsKitchenStaffOrAdmin
from .drafts import OrderDraft
from .serializers import (
    AssignStaffSerializer,
    OrderAdminUpdateSerializer,
    OrderCreateSerializer,
    OrderListSerializer,
    OrderRatingSerializer,
    OrderSerializer,
    UpdateOrderStatusSerializer,
)
from .services import OrderService

logger = logging.getLogger(__name__)


class OrderViewSet(viewsets.GenericViewSet):
    """
    Orders API.

    Customers create, list and rate their own orders. Kitchen staff and
    admins see every order, drive the status machine and assign staff.
    Admins edit and delete. Business rules live in OrderService; this layer
    only validates request shape and picks the serializer.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = OrderSerializer
    lookup_value_regex = "[0-9a-f-]{36}"

    def get_queryset(self):
        return OrderService.find_all(self.request.user, self.request.query_params)

    def get_serializer_class(self):
        if self.action in ("list", "kitchen"):
            return OrderListSerializer
        if self.action == "create":
            return OrderCreateSerializer
        return OrderSerializer

    def _respond(self, order, status_code=status.HTTP_200_OK) -> Response:
        return Response(
            OrderSerializer(order, context=self.get_serializer_context()).data,
            status=status_code,
        )

    def list(self, request: Request) -> Response:
        page = self.paginate_queryset(self.get_queryset())
        serializer = OrderListSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    @method_decorator(ratelimit(key="user_or_ip", rate="20/m", method="POST", block=True))
    def create(self, request: Request) -> Response:
        serializer = OrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = OrderService.create(OrderDraft.from_data(serializer.validated_data), request.user)
        return self._respond(OrderService.find_by_id(order.id), status.HTTP_201_CREATED)

    def retrieve(self, request: Request, pk=None) -> Response:
        return self._respond(OrderService.find_for_actor(pk, request.user))

    def partial_update(self, request: Request, pk=None) -> Response:
        """Admin edit of instructions, schedule, prep time and tip."""
        serializer = OrderAdminUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = OrderService.update(pk, serializer.validated_data, request.user)
        return self._respond(OrderService.find_by_id(order.id))

    def destroy(self, request: Request, pk=None) -> Response:
        OrderService.remove(pk, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(
        detail=False,
        methods=["get"],
        url_path=r"by-number/(?P<order_number>[A-Za-z0-9-]+)",
    )
    def by_number(self, request: Request, order_number=None) -> Response:
        order = OrderService.find_by_order_number(order_number)
        return self._respond(OrderService.find_for_actor(order.id, request.user))

    @action(detail=False, methods=["get"], permission_classes=[IsKitchenStaffOrAdmin])
    def kitchen(self, request: Request) -> Response:
        """Active orders for the kitchen display, oldest first."""
        orders = OrderService.find_kitchen_orders(request.user, request.query_params)
        return Response(OrderListSerializer(orders, many=True).data)

    @action(
        detail=True,
        methods=["patch"],
        url_path="status",
        permission_classes=[IsKitchenStaffOrAdmin],
    )
    def update_status(self, request: Request, pk=None) -> Response:
        serializer = UpdateOrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = OrderService.update_status(
            pk,
            serializer.validated_data["status"],
            request.user,
            notes=serializer.validated_data.get("notes"),
        )
        return self._respond(OrderService.find_by_id(order.id))

    @action(detail=True, methods=["patch"], permission_classes=[IsKitchenStaffOrAdmin])
    def assign(self, request: Request, pk=None) -> Response:
        serializer = AssignStaffSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = OrderService.assign_staff(pk, serializer.validated_data["staff_id"], request.user)
        return self._respond(OrderService.find_by_id(order.id))

    @action(detail=True, methods=["post"])
    def rating(self, request: Request, pk=None) -> Response:
        serializer = OrderRatingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = OrderService.add_rating(pk, serializer.validated_data, request.user)
        return self._respond(OrderService.find_by_id(order.id))

    def get_permissions(self):
        if self.action in ("partial_update", "destroy"):
            return [IsAdmin()]
        return super().get_permissions()
