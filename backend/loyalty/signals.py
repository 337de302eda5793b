from django.dispatch import receiver
import logging

from orders.signals import order_completed

logger = logging.getLogger(__name__)


@receiver(order_completed)
def accrue_points_on_completion(sender, order, **kwargs):
    """Award loyalty points once a paid order is completed."""
    from .services import LoyaltyService

    LoyaltyService.accrue_for_order(order.id)
