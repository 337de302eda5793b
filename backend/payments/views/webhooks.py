"""
Webhook views for payment providers.

Handles webhook callbacks from Stripe. These endpoints process asynchronous
payment events and update order payment state.
"""

from rest_framework.permissions import AllowAny
from django.views.decorators.csrf import csrf_exempt
from django.utils.decorators import method_decorator
from django.http import HttpResponse
import stripe
import logging

from ..gateway import StripeGateway
from ..services import PaymentService
from .base import BasePaymentView

logger = logging.getLogger(__name__)


@method_decorator(csrf_exempt, name="dispatch")
class StripeWebhookView(BasePaymentView):
    """
    Stripe webhook view to handle asynchronous events.

    Unhandled event types are logged and acknowledged with 200 so Stripe
    does not retry them.
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    EVENT_HANDLERS = {
        "payment_intent.succeeded": PaymentService.handle_payment_succeeded,
        "payment_intent.payment_failed": PaymentService.handle_payment_failed,
        "charge.refunded": PaymentService.handle_charge_refunded,
    }

    def post(self, request, *args, **kwargs):
        payload = request.body
        sig_header = request.META.get("HTTP_STRIPE_SIGNATURE")

        try:
            event = StripeGateway.construct_event(payload, sig_header)
        except ValueError as e:
            # Invalid payload
            logger.error(f"Stripe webhook: Invalid payload - {e}")
            return HttpResponse(status=400)
        except stripe.error.SignatureVerificationError as e:
            # Invalid signature
            logger.error(f"Stripe webhook: Invalid signature - {e}")
            return HttpResponse(status=400)

        event_type = event.get("type")
        handler = self.EVENT_HANDLERS.get(event_type)
        if handler is None:
            logger.info(f"Stripe webhook: Unhandled event type {event_type}")
            return HttpResponse(status=200)

        handler(event["data"]["object"])
        return HttpResponse(status=200)
