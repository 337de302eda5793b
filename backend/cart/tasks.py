from celery import shared_task
import logging

logger = logging.getLogger(__name__)


@shared_task
def cleanup_expired_carts():
    """
    Delete carts whose expires_at has passed.

    This task runs hourly via Celery Beat.

    Returns:
        str: Status message with count of deleted carts
    """
    from .services import CartService

    try:
        count = CartService.cleanup_expired()
        if not count:
            return "No expired carts to clean up"
        return f"Deleted {count} expired carts"

    except Exception as e:
        logger.error(f"Error cleaning up expired carts: {e}", exc_info=True)
        raise
