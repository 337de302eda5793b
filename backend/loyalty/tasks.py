from celery import shared_task
import logging

logger = logging.getLogger(__name__)


@shared_task
def expire_loyalty_points():
    """
    Offset overdue earned and bonus points on every account.

    This task runs daily via Celery Beat. Account reads apply the same
    expiry lazily; this sweep covers accounts that are rarely read.

    Returns:
        str: Status message with the number of points expired
    """
    from .services import LoyaltyService

    try:
        expired = LoyaltyService.expire_all()
        if not expired:
            return "No loyalty points to expire"
        message = f"Expired {expired} loyalty points"
        logger.info(message)
        return message

    except Exception as e:
        logger.error(f"Error expiring loyalty points: {e}", exc_info=True)
        raise
