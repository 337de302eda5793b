"""
Thin wrapper around the Stripe API.

Every Stripe call goes through StripeGateway so that errors from the
processor surface as PaymentError and tests have one place to patch.
"""

import json
import logging

import stripe
from django.conf import settings

from core_backend.exceptions import PaymentError

logger = logging.getLogger(__name__)


class StripeGateway:
    """Stripe PaymentIntent, Refund and webhook operations."""

    def __init__(self, api_key=None):
        stripe.api_key = api_key or settings.STRIPE_SECRET_KEY

    def create_payment_intent(self, amount: int, currency: str, metadata: dict, description=None, replaces=None):
        """
        Create a card PaymentIntent for ``amount`` minor units.

        ``replaces`` is the id of a canceled intent for the same order; it
        goes into the idempotency key so Stripe does not replay the old one.
        """
        idempotency_key = f"order-{metadata['order_id']}-{amount}"
        if replaces:
            idempotency_key = f"{idempotency_key}-after-{replaces}"
        try:
            return stripe.PaymentIntent.create(
                amount=amount,
                currency=currency,
                metadata=metadata,
                description=description,
                automatic_payment_methods={"enabled": True},
                idempotency_key=idempotency_key,
            )
        except stripe.error.StripeError as e:
            logger.error(f"Stripe PaymentIntent.create failed for order {metadata.get('order_id')}: {e}")
            raise PaymentError(str(e))

    def retrieve_payment_intent(self, payment_intent_id: str):
        try:
            return stripe.PaymentIntent.retrieve(payment_intent_id)
        except stripe.error.StripeError as e:
            logger.error(f"Stripe PaymentIntent.retrieve failed for {payment_intent_id}: {e}")
            raise PaymentError(str(e))

    def confirm_payment_intent(self, payment_intent_id: str, payment_method=None):
        params = {}
        if payment_method:
            params["payment_method"] = payment_method
        try:
            return stripe.PaymentIntent.confirm(payment_intent_id, **params)
        except stripe.error.StripeError as e:
            logger.error(f"Stripe PaymentIntent.confirm failed for {payment_intent_id}: {e}")
            raise PaymentError(str(e))

    def create_refund(self, payment_intent_id: str, amount=None, reason="requested_by_customer"):
        """Full refund when ``amount`` (minor units) is None, partial otherwise."""
        params = {"payment_intent": payment_intent_id, "reason": reason}
        if amount is not None:
            params["amount"] = amount
        try:
            return stripe.Refund.create(**params)
        except stripe.error.StripeError as e:
            logger.error(f"Stripe Refund.create failed for {payment_intent_id}: {e}")
            raise PaymentError(str(e))

    @staticmethod
    def construct_event(payload: bytes, sig_header, secret=None):
        """
        Verify and parse a webhook body.

        With no signing secret configured (local development) the body is
        parsed as plain JSON. Raises ValueError for an unparseable body and
        stripe.error.SignatureVerificationError for a bad signature.
        """
        secret = secret if secret is not None else settings.STRIPE_WEBHOOK_SECRET
        if not secret:
            logger.warning("STRIPE_WEBHOOK_SECRET is not set; skipping signature verification")
            return json.loads(payload)
        return stripe.Webhook.construct_event(payload, sig_header, secret)
