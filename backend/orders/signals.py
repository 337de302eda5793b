from django.dispatch import Signal, receiver
import logging

logger = logging.getLogger(__name__)

# Custom signals for order events. OrderService sends them after commit.
# Arguments: order (and previous_status for order_status_changed).
order_created = Signal()
order_status_changed = Signal()
order_completed = Signal()


@receiver(order_created)
def notify_order_created(sender, order, **kwargs):
    from notifications.services import notification_service

    notification_service.order_created(order)


@receiver(order_status_changed)
def notify_order_status_changed(sender, order, previous_status, **kwargs):
    from notifications.services import notification_service

    notification_service.order_status_changed(order, previous_status)
