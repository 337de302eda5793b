from django.urls import path

from .views import (
    ConfirmPaymentView,
    CreatePaymentIntentView,
    RefundPaymentView,
    StripeWebhookView,
)

app_name = "payments"

urlpatterns = [
    path("create-intent/", CreatePaymentIntentView.as_view(), name="create-intent"),
    path("confirm/", ConfirmPaymentView.as_view(), name="confirm"),
    path("refund/", RefundPaymentView.as_view(), name="refund"),
    path("webhooks/stripe/", StripeWebhookView.as_view(), name="stripe-webhook"),
]
