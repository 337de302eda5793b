"""
Payment endpoint tests: intent creation, refunds and the Stripe webhook.
"""
import json
import pytest
import stripe
from decimal import Decimal
from unittest.mock import patch

from orders.models import Order, OrderStatus, PaymentStatus

WEBHOOK_URL = "/api/payments/webhooks/stripe/"


def post_event(client, event, **extra):
    return client.post(WEBHOOK_URL, data=json.dumps(event), content_type="application/json", **extra)


def intent_event(event_type, order, intent_id="pi_test_paid_123", **fields):
    return {
        "id": "evt_test",
        "type": event_type,
        "data": {"object": {"id": intent_id, "metadata": {"order_id": str(order.id)}, **fields}},
    }


@pytest.mark.django_db
class TestPaymentIntentAPI:
    def test_create_intent(self, customer_client, pending_order):
        intent = {
            "id": "pi_api",
            "client_secret": "pi_api_secret",
            "status": "requires_payment_method",
            "amount": 4534,
            "currency": "usd",
        }
        with patch("payments.gateway.stripe.PaymentIntent.create", return_value=intent):
            response = customer_client.post(
                "/api/payments/create-intent/", {"order_id": str(pending_order.id)}, format="json"
            )

        assert response.status_code == 201, response.data
        assert response.data["client_secret"] == "pi_api_secret"
        assert response.data["amount"] == 4534

    def test_processor_error_is_generic(self, customer_client, pending_order):
        with patch(
            "payments.gateway.stripe.PaymentIntent.create",
            side_effect=stripe.error.AuthenticationError("Invalid API Key provided: sk_test_***"),
        ):
            response = customer_client.post(
                "/api/payments/create-intent/", {"order_id": str(pending_order.id)}, format="json"
            )

        assert response.status_code == 402
        assert response.data == {
            "error": "payment_error",
            "message": "Payment could not be processed.",
        }, "Processor text must not leak to clients"

    def test_confirm_someone_elses_intent(self, api_client, pending_order, other_customer):
        Order.objects.filter(pk=pending_order.pk).update(payment_intent_id="pi_owned")
        api_client.force_authenticate(user=other_customer)
        with patch("payments.gateway.stripe.PaymentIntent.confirm") as mock_confirm:
            response = api_client.post(
                "/api/payments/confirm/", {"payment_intent_id": "pi_owned"}, format="json"
            )
        assert response.status_code == 403
        mock_confirm.assert_not_called()

    def test_refund_requires_admin(self, customer_client, paid_order):
        response = customer_client.post(
            "/api/payments/refund/", {"order_id": str(paid_order.id)}, format="json"
        )
        assert response.status_code == 403

    def test_admin_refund(self, pos_admin_client, paid_order):
        refund = {"id": "re_api", "amount": 500, "status": "pending"}
        with patch("payments.gateway.stripe.Refund.create", return_value=refund):
            response = pos_admin_client.post(
                "/api/payments/refund/",
                {"order_id": str(paid_order.id), "amount": "5.00", "reason": "duplicate"},
                format="json",
            )
        assert response.status_code == 200
        assert response.data["refund_id"] == "re_api"
        assert response.data["amount"] == Decimal("5.00")


@pytest.mark.django_db
class TestStripeWebhook:
    @pytest.fixture(autouse=True)
    def unsigned_webhooks(self, settings):
        settings.STRIPE_WEBHOOK_SECRET = ""

    def test_payment_succeeded(self, api_client, pending_order):
        Order.objects.filter(pk=pending_order.pk).update(
            payment_intent_id="pi_test_paid_123", payment_status=PaymentStatus.PROCESSING
        )
        response = post_event(api_client, intent_event("payment_intent.succeeded", pending_order))

        assert response.status_code == 200
        pending_order.refresh_from_db()
        assert pending_order.payment_status == PaymentStatus.COMPLETED
        assert pending_order.status == OrderStatus.CONFIRMED

    def test_double_delivery_confirms_once(self, api_client, pending_order):
        Order.objects.filter(pk=pending_order.pk).update(payment_status=PaymentStatus.PROCESSING)
        event = intent_event("payment_intent.succeeded", pending_order)

        assert post_event(api_client, event).status_code == 200
        assert post_event(api_client, event).status_code == 200

        statuses = list(pending_order.timeline.values_list("status", flat=True))
        assert statuses.count(OrderStatus.CONFIRMED) == 1, "One CONFIRMED entry for two deliveries"

    def test_payment_failed(self, api_client, pending_order):
        event = intent_event(
            "payment_intent.payment_failed",
            pending_order,
            last_payment_error={"message": "Insufficient funds"},
        )
        assert post_event(api_client, event).status_code == 200
        pending_order.refresh_from_db()
        assert pending_order.payment_status == PaymentStatus.FAILED

    def test_charge_refunded(self, api_client, paid_order):
        event = {
            "id": "evt_refund",
            "type": "charge.refunded",
            "data": {
                "object": {
                    "id": "ch_1",
                    "payment_intent": "pi_test_paid_123",
                    "amount": 4534,
                    "amount_refunded": 4534,
                    "currency": "usd",
                }
            },
        }
        assert post_event(api_client, event).status_code == 200
        paid_order.refresh_from_db()
        assert paid_order.payment_status == PaymentStatus.REFUNDED

    def test_unhandled_event_acknowledged(self, api_client):
        event = {"id": "evt_x", "type": "customer.created", "data": {"object": {}}}
        assert post_event(api_client, event).status_code == 200

    def test_invalid_payload(self, api_client):
        response = api_client.post(WEBHOOK_URL, data="not json", content_type="application/json")
        assert response.status_code == 400

    def test_bad_signature(self, api_client, pending_order, settings):
        settings.STRIPE_WEBHOOK_SECRET = "whsec_test"
        response = post_event(
            api_client,
            intent_event("payment_intent.succeeded", pending_order),
            HTTP_STRIPE_SIGNATURE="t=1,v1=forged",
        )
        assert response.status_code == 400
        pending_order.refresh_from_db()
        assert pending_order.payment_status == PaymentStatus.PENDING
