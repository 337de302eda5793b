"""
Authenticated payment views: intent creation, confirmation and refunds.
"""

from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from django.utils.decorators import method_decorator
from django_ratelimit.decorators import ratelimit
import logging

from users.permissions import IsAdmin
from .base import BasePaymentView, PAYMENT_MESSAGES
from ..serializers import (
    ConfirmPaymentSerializer,
    CreatePaymentIntentSerializer,
    RefundSerializer,
)
from ..services import PaymentService

logger = logging.getLogger(__name__)


class CreatePaymentIntentView(BasePaymentView):
    """
    POST /api/payments/create-intent/

    Creates (or reuses) the Stripe PaymentIntent for one of the caller's
    pending orders.
    """

    permission_classes = [IsAuthenticated]

    @method_decorator(ratelimit(key="user_or_ip", rate="10/m", method="POST", block=True))
    def post(self, request, *args, **kwargs):
        serializer = CreatePaymentIntentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = PaymentService.create_payment_intent(
            serializer.validated_data["order_id"], request.user
        )
        return self.create_success_response(
            {**result, "message": PAYMENT_MESSAGES["INTENT_CREATED"]},
            status.HTTP_201_CREATED,
        )


class ConfirmPaymentView(BasePaymentView):
    """POST /api/payments/confirm/"""

    permission_classes = [IsAuthenticated]

    def post(self, request, *args, **kwargs):
        serializer = ConfirmPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = PaymentService.confirm_payment(
            serializer.validated_data["payment_intent_id"],
            request.user,
            payment_method=serializer.validated_data.get("payment_method"),
        )
        return self.create_success_response(
            {**result, "message": PAYMENT_MESSAGES["PAYMENT_CONFIRMED"]}
        )


class RefundPaymentView(BasePaymentView):
    """POST /api/payments/refund/ (admin only)"""

    permission_classes = [IsAdmin]

    def post(self, request, *args, **kwargs):
        serializer = RefundSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = PaymentService.create_refund(
            data["order_id"],
            request.user,
            amount=data.get("amount"),
            reason=data.get("reason"),
        )
        return self.create_success_response(
            {**result, "message": PAYMENT_MESSAGES["REFUND_REQUESTED"]}
        )
