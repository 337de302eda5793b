from django.dispatch import Signal, receiver
import logging

logger = logging.getLogger(__name__)

# Custom payment signals, sent by PaymentService after commit.
# Argument: order
payment_completed = Signal()
payment_failed = Signal()
payment_refunded = Signal()


@receiver(payment_completed)
def notify_payment_completed(sender, order, **kwargs):
    from notifications.services import notification_service

    notification_service.payment_event(order, "payment.completed")


@receiver(payment_failed)
def notify_payment_failed(sender, order, **kwargs):
    from notifications.services import notification_service

    notification_service.payment_event(order, "payment.failed")


@receiver(payment_refunded)
def notify_payment_refunded(sender, order, **kwargs):
    from notifications.services import notification_service

    notification_service.payment_event(order, "payment.refunded")
