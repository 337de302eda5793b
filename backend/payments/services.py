"""
Payment reconciliation between orders and Stripe.

Intent creation and refunds are requested synchronously; the outcome of a
payment (succeeded, failed, refunded) arrives asynchronously through the
Stripe webhook. Each handler locks the order row and gates on the current
payment status, so repeated deliveries are no-ops. A refund may arrive
before the success event; it is recorded and the late success no longer
confirms the order.
"""

from decimal import Decimal
import logging

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.utils import timezone

from core_backend.exceptions import BadRequest, Forbidden, NotFound
from orders.models import Order, OrderStatus, OrderTimelineEntry, PaymentStatus
from users.permissions import ensure_admin
from .gateway import StripeGateway
from .money import from_minor, to_minor
from .signals import payment_completed, payment_failed, payment_refunded

logger = logging.getLogger(__name__)

SUCCEEDED = "succeeded"
CANCELED = "canceled"


class PaymentService:
    """
    Creates Stripe payment intents for orders and applies the processor's
    callbacks to ``Order.payment_status``.
    """

    @staticmethod
    def gateway() -> StripeGateway:
        return StripeGateway()

    @staticmethod
    def currency() -> str:
        return getattr(settings, "STRIPE_CURRENCY", "usd")

    @staticmethod
    def _lock_order(**lookup) -> Order:
        try:
            return Order.objects.select_for_update().get(**lookup)
        except (Order.DoesNotExist, DjangoValidationError, ValueError, TypeError):
            raise NotFound("Order not found")

    # ------------------------------------------------------------------
    # Synchronous requests
    # ------------------------------------------------------------------

    @staticmethod
    @transaction.atomic
    def create_payment_intent(order_id, user) -> dict:
        """
        Returns ``client_secret``, ``payment_intent_id``, ``amount`` (minor
        units) and ``currency``. Reuses the order's open intent. A canceled
        intent is replaced; a succeeded one means the order is already paid.
        """
        order = PaymentService._lock_order(pk=order_id)
        if order.user_id != user.id:
            raise Forbidden("You can only pay for your own orders")
        if order.status != OrderStatus.PENDING:
            raise BadRequest("Only pending orders can be paid")
        if order.payment_status == PaymentStatus.COMPLETED:
            raise BadRequest("Order has already been paid")

        gateway = PaymentService.gateway()
        currency = PaymentService.currency()

        replaces = None
        if order.payment_intent_id:
            intent = gateway.retrieve_payment_intent(order.payment_intent_id)
            if intent["status"] == SUCCEEDED:
                # The success webhook has not been applied yet
                logger.warning(
                    f"Payment intent {intent['id']} for order {order.order_number} already succeeded"
                )
                raise BadRequest("Order has already been paid")
            if intent["status"] == CANCELED:
                replaces = intent["id"]
                logger.info(f"Replacing canceled payment intent {intent['id']} for order {order.order_number}")
            else:
                if order.payment_status == PaymentStatus.FAILED:
                    order.payment_status = PaymentStatus.PROCESSING
                    order.save(update_fields=["payment_status", "updated_at"])
                logger.info(f"Reusing payment intent {intent['id']} for order {order.order_number}")
                return {
                    "client_secret": intent["client_secret"],
                    "payment_intent_id": intent["id"],
                    "amount": intent["amount"],
                    "currency": intent["currency"],
                }

        amount = to_minor(order.total, currency)
        intent = gateway.create_payment_intent(
            amount,
            currency,
            metadata={
                "order_id": str(order.id),
                "order_number": order.order_number,
                "user_id": str(user.id),
                "user_email": user.email,
            },
            description=f"Payment for Order #{order.order_number}",
            replaces=replaces,
        )

        order.payment_intent_id = intent["id"]
        order.payment_status = PaymentStatus.PROCESSING
        order.payment_error = ""
        order.save(update_fields=["payment_intent_id", "payment_status", "payment_error", "updated_at"])

        logger.info(f"Created payment intent {intent['id']} for order {order.order_number} ({amount} {currency})")
        return {
            "client_secret": intent["client_secret"],
            "payment_intent_id": intent["id"],
            "amount": amount,
            "currency": currency,
        }

    @staticmethod
    def confirm_payment(payment_intent_id, user, payment_method=None) -> dict:
        """
        Confirm the intent at Stripe. A ``succeeded`` result is reconciled
        immediately, the same way the webhook would.

        Only the owner of the order holding the intent (or an admin) may
        confirm it.
        """
        order = Order.objects.filter(payment_intent_id=payment_intent_id).first()
        if order is None:
            raise NotFound("Payment not found")
        if order.user_id != user.id and not user.is_admin:
            raise Forbidden("You can only confirm payments for your own orders")

        intent = PaymentService.gateway().confirm_payment_intent(payment_intent_id, payment_method)
        if intent["status"] == SUCCEEDED:
            PaymentService.handle_payment_succeeded(intent)
        return {"payment_intent_id": intent["id"], "status": intent["status"]}

    @staticmethod
    @transaction.atomic
    def create_refund(order_id, actor, amount=None, reason=None) -> dict:
        """
        Ask Stripe for a full or partial refund. Payment status is left for
        the ``charge.refunded`` webhook to update.
        """
        ensure_admin(actor)
        order = PaymentService._lock_order(pk=order_id)
        if order.payment_status != PaymentStatus.COMPLETED:
            raise BadRequest("Only completed payments can be refunded")
        if not order.payment_intent_id:
            raise BadRequest("Order has no payment to refund")

        currency = PaymentService.currency()
        if amount is not None:
            amount = Decimal(amount)
            if amount <= 0 or amount > order.total:
                raise BadRequest("Refund amount must be positive and no more than the order total")

        refund = PaymentService.gateway().create_refund(
            order.payment_intent_id,
            amount=to_minor(amount, currency) if amount is not None else None,
            reason=reason or "requested_by_customer",
        )
        logger.info(f"Requested refund {refund['id']} for order {order.order_number} by admin {actor.id}")
        return {
            "refund_id": refund["id"],
            "amount": from_minor(refund["amount"], currency),
            "status": refund["status"],
        }

    # ------------------------------------------------------------------
    # Webhook handlers
    # ------------------------------------------------------------------

    @staticmethod
    @transaction.atomic
    def handle_payment_succeeded(payment_intent):
        order_id = (payment_intent.get("metadata") or {}).get("order_id")
        if not order_id:
            logger.warning(f"Payment intent {payment_intent.get('id')} has no order_id metadata")
            return None
        try:
            order = PaymentService._lock_order(pk=order_id)
        except NotFound:
            logger.warning(f"Payment succeeded for unknown order {order_id}")
            return None

        if order.payment_status not in (PaymentStatus.PENDING, PaymentStatus.PROCESSING):
            logger.info(
                f"Ignoring payment success for order {order.order_number}: "
                f"payment status is {order.payment_status}"
            )
            return order

        now = timezone.now()
        order.payment_status = PaymentStatus.COMPLETED
        order.payment_completed_at = now
        order.payment_error = ""
        if not order.payment_intent_id:
            order.payment_intent_id = payment_intent.get("id")
        update_fields = [
            "payment_status",
            "payment_completed_at",
            "payment_error",
            "payment_intent_id",
            "updated_at",
        ]
        if order.status == OrderStatus.PENDING:
            order.status = OrderStatus.CONFIRMED
            update_fields.append("status")
        order.save(update_fields=update_fields)

        OrderTimelineEntry.objects.create(
            order=order, status=order.status, timestamp=now, notes="Payment confirmed"
        )
        logger.info(f"Payment completed for order {order.order_number}")
        transaction.on_commit(lambda: payment_completed.send(sender=Order, order=order))
        return order

    @staticmethod
    @transaction.atomic
    def handle_payment_failed(payment_intent):
        order_id = (payment_intent.get("metadata") or {}).get("order_id")
        if not order_id:
            logger.warning(f"Payment intent {payment_intent.get('id')} has no order_id metadata")
            return None
        try:
            order = PaymentService._lock_order(pk=order_id)
        except NotFound:
            logger.warning(f"Payment failure for unknown order {order_id}")
            return None

        if order.payment_status not in (PaymentStatus.PENDING, PaymentStatus.PROCESSING):
            logger.info(
                f"Ignoring payment failure for order {order.order_number}: "
                f"payment status is {order.payment_status}"
            )
            return order

        error = payment_intent.get("last_payment_error") or {}
        order.payment_status = PaymentStatus.FAILED
        order.payment_error = error.get("message") or "Payment failed"
        order.save(update_fields=["payment_status", "payment_error", "updated_at"])

        logger.info(f"Payment failed for order {order.order_number}: {order.payment_error}")
        transaction.on_commit(lambda: payment_failed.send(sender=Order, order=order))
        return order

    @staticmethod
    @transaction.atomic
    def handle_charge_refunded(charge):
        payment_intent_id = charge.get("payment_intent")
        if not payment_intent_id:
            logger.warning(f"Charge {charge.get('id')} has no payment_intent")
            return None
        try:
            order = PaymentService._lock_order(payment_intent_id=payment_intent_id)
        except NotFound:
            logger.warning(f"Refund for unknown payment intent {payment_intent_id}")
            return None

        # No payment status gate: the refund can arrive before the success event
        currency = charge.get("currency") or PaymentService.currency()
        amount_refunded = charge.get("amount_refunded") or 0
        if amount_refunded <= 0:
            logger.info(f"Charge {charge.get('id')} reports no refunded amount")
            return order
        refund_amount = from_minor(amount_refunded, currency)
        if order.refund_amount is not None and refund_amount <= order.refund_amount:
            logger.info(
                f"Refund of {refund_amount} already recorded for order {order.order_number} "
                f"(recorded {order.refund_amount})"
            )
            return order

        now = timezone.now()
        partial = amount_refunded < (charge.get("amount") or 0)
        order.payment_status = (
            PaymentStatus.PARTIALLY_REFUNDED if partial else PaymentStatus.REFUNDED
        )
        order.refund_amount = refund_amount
        order.refunded_at = now
        order.save(update_fields=["payment_status", "refund_amount", "refunded_at", "updated_at"])

        OrderTimelineEntry.objects.create(
            order=order,
            status=order.status,
            timestamp=now,
            notes=f"{'Partial refund' if partial else 'Refund'} of ${refund_amount} processed",
        )
        logger.info(f"Refund of {refund_amount} recorded for order {order.order_number}")
        transaction.on_commit(lambda: payment_refunded.send(sender=Order, order=order))
        return order

