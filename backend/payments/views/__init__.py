"""
Payment views package.

- authenticated.py: payment intent creation, confirmation and refunds
- webhooks.py: Stripe webhook handler
- base.py: Shared utilities and base classes
"""

from .authenticated import (
    ConfirmPaymentView,
    CreatePaymentIntentView,
    RefundPaymentView,
)
from .base import BasePaymentView, PAYMENT_MESSAGES
from .webhooks import StripeWebhookView

__all__ = [
    # Authenticated views
    "CreatePaymentIntentView",
    "ConfirmPaymentView",
    "RefundPaymentView",
    # Webhook views
    "StripeWebhookView",
    # Base utilities
    "BasePaymentView",
    "PAYMENT_MESSAGES",
]
