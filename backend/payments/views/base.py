"""
Base classes and utilities for payment views.
"""

from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
import logging

from core_backend.exceptions import PaymentError

logger = logging.getLogger(__name__)


class BasePaymentView(APIView):
    """
    Base class for all payment views with common functionality.
    """

    def handle_exception(self, exc):
        """
        Processor failures are logged with their full text here; the client
        only receives the generic message from the exception handler.
        """
        if isinstance(exc, PaymentError):
            logger.error(f"Payment view error in {self.__class__.__name__}: {exc.message}")
        return super().handle_exception(exc)

    def create_success_response(self, data, status_code=status.HTTP_200_OK):
        return Response(data, status=status_code)


PAYMENT_MESSAGES = {
    "INTENT_CREATED": "Payment intent created successfully",
    "PAYMENT_CONFIRMED": "Payment confirmed",
    "REFUND_REQUESTED": "Refund requested",
}
