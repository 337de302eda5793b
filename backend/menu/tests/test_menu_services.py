"""
Menu item lookups used by carts and orders.
"""
import pytest
from unittest.mock import patch

from django.db import DatabaseError

from core_backend.exceptions import Unavailable
from menu.models import MenuItem
from menu.services import MenuItemService


@pytest.mark.django_db
class TestFindAvailable:
    def test_available_item(self, margherita):
        assert MenuItemService.find_available(margherita.id) == margherita

    def test_sold_out_item(self, sold_out_item):
        with pytest.raises(Unavailable) as exc_info:
            MenuItemService.find_available(sold_out_item.id)
        assert 'Menu item "Tiramisu" is not available' == str(exc_info.value)

    def test_inactive_item(self, garlic_bread):
        garlic_bread.is_active = False
        garlic_bread.save()
        with pytest.raises(Unavailable):
            MenuItemService.find_available(garlic_bread.id)

    def test_missing_item_uses_given_name(self, db):
        with pytest.raises(Unavailable) as exc_info:
            MenuItemService.find_available("00000000-0000-0000-0000-000000000000", name="Calzone")
        assert "Calzone" in str(exc_info.value)

    def test_malformed_id(self, db):
        assert MenuItemService.find_by_id("not-a-uuid") is None


@pytest.mark.django_db
class TestSoldCounts:
    def test_increment(self, margherita, garlic_bread):
        MenuItemService.increment_sold_counts({margherita.id: 2, garlic_bread.id: 1})
        MenuItemService.increment_sold_counts({margherita.id: 3})

        margherita.refresh_from_db()
        garlic_bread.refresh_from_db()
        assert margherita.sold_count == 5
        assert garlic_bread.sold_count == 1

    def test_failure_is_logged_not_raised(self, margherita):
        with patch.object(MenuItem.objects, "filter", side_effect=DatabaseError("locked")), patch(
            "menu.services.logger"
        ) as mock_logger:
            MenuItemService.increment_sold_counts({margherita.id: 1})

        assert "Could not increment sold count" in mock_logger.warning.call_args.args[0]
        margherita.refresh_from_db()
        assert margherita.sold_count == 0
