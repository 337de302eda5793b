import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, transaction
from django.db.models import F

from core_backend.exceptions import Unavailable
from .models import MenuItem

logger = logging.getLogger(__name__)


class MenuItemService:
    """Menu item lookups for the cart and order services."""

    @staticmethod
    def get_queryset():
        return MenuItem.objects.prefetch_related("customizations__options")

    @staticmethod
    def find_by_id(menu_item_id):
        try:
            return MenuItemService.get_queryset().get(pk=menu_item_id)
        except (MenuItem.DoesNotExist, DjangoValidationError, ValueError, TypeError):
            return None

    @staticmethod
    def find_available(menu_item_id, name=None) -> MenuItem:
        """
        Return an active, available menu item or raise Unavailable.

        ``name`` is used in the error message when the caller already knows
        the item's display name (e.g. a cart snapshot).
        """
        menu_item = MenuItemService.find_by_id(menu_item_id)
        if menu_item is None or not menu_item.is_orderable:
            label = name or (menu_item.name if menu_item else menu_item_id)
            raise Unavailable(f'Menu item "{label}" is not available')
        return menu_item

    @staticmethod
    def increment_sold_counts(quantities):
        """
        Best-effort sold counter update; ``quantities`` maps menu item id to
        quantity sold. Each update runs in its own savepoint so a failure is
        logged without breaking the caller's transaction.
        """
        for menu_item_id, quantity in quantities.items():
            try:
                with transaction.atomic():
                    MenuItem.objects.filter(pk=menu_item_id).update(
                        sold_count=F("sold_count") + quantity
                    )
            except DatabaseError as e:
                logger.warning(
                    f"Could not increment sold count for menu item {menu_item_id}: {e}"
                )
