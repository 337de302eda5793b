"""
Pricing and totals calculators shared by Cart and Order.

PricingCalculator: prices one menu item with its customization selections
and validates the selections against the menu item definition.

OrderCalculator: subtotal, tax, delivery fee, total and estimated prep time
for a set of priced lines. Cart recomputes on every mutation; Order computes
once at creation and freezes the result.

Usage:
    from orders.calculators import PricingCalculator, OrderCalculator

    item_price, selections = PricingCalculator(menu_item).price(customizations)

    totals = OrderCalculator(cart.items.all(), cart.order_type).calculate_totals()
"""

from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

from core_backend.config import pos_settings
from core_backend.exceptions import (
    InvalidCustomization,
    InvalidOption,
    MissingRequiredCustomization,
    UnavailableOption,
)
from payments.money import ZERO, quantize


class PricingCalculator:
    """
    Prices a menu item for a list of customization selections.

    A selection is ``{"customization_id": ..., "selected_options":
    [{"option_id": ...}, ...]}``. The validated output carries the names and
    price modifiers copied from the menu item, so it can be stored as a
    snapshot on cart and order items.
    """

    def __init__(self, menu_item):
        self.menu_item = menu_item
        self._customizations = {
            str(c.id): c for c in menu_item.customizations.all()
        }

    def price(self, selections: Optional[List[Dict[str, Any]]] = None) -> Tuple[Decimal, List[Dict[str, Any]]]:
        """
        Returns (item_price, validated_selections).

        item_price = base_price + sum(option price modifiers). Negative
        modifiers are applied as-is and the result is not floored at zero.

        Raises:
            InvalidCustomization: unknown or repeated customization, or a
                selection count outside min/max
            MissingRequiredCustomization: required customization without options
            InvalidOption: option not part of the customization
            UnavailableOption: option switched off
        """
        selections = selections or []
        item_price = Decimal(self.menu_item.base_price)
        validated = []
        seen = set()

        for selection in selections:
            customization_id = str(selection.get("customization_id", ""))
            customization = self._customizations.get(customization_id)
            if customization is None:
                raise InvalidCustomization(f"Invalid customization: {customization_id}")
            if customization_id in seen:
                raise InvalidCustomization(
                    f"Customization '{customization.name}' was selected more than once"
                )
            seen.add(customization_id)

            option_ids = [str(o.get("option_id", "")) for o in selection.get("selected_options") or []]
            if customization.required and not option_ids:
                raise MissingRequiredCustomization(
                    f"Customization '{customization.name}' is required"
                )
            self._check_selection_count(customization, option_ids)

            options = {str(o.id): o for o in customization.options.all()}
            processed_options = []
            for option_id in option_ids:
                option = options.get(option_id)
                if option is None:
                    raise InvalidOption(f"Invalid customization option: {option_id}")
                if not option.is_available:
                    raise UnavailableOption(f"Option '{option.name}' is not available")
                item_price += option.price_modifier
                processed_options.append(
                    {
                        "option_id": option_id,
                        "option_name": option.name,
                        "price_modifier": str(quantize(option.price_modifier)),
                    }
                )

            validated.append(
                {
                    "customization_id": customization_id,
                    "customization_name": customization.name,
                    "selected_options": processed_options,
                }
            )

        for customization_id, customization in self._customizations.items():
            if customization.required and customization_id not in seen:
                raise MissingRequiredCustomization(
                    f"Customization '{customization.name}' is required"
                )

        return quantize(item_price), validated

    @staticmethod
    def _check_selection_count(customization, option_ids):
        if len(set(option_ids)) != len(option_ids):
            raise InvalidCustomization(
                f"Customization '{customization.name}' lists an option more than once"
            )
        count = len(option_ids)
        if count == 0:
            return
        maximum = customization.max_selections
        if customization.type == customization.SelectionType.SINGLE:
            maximum = 1
        if maximum and count > maximum:
            raise InvalidCustomization(
                f"Customization '{customization.name}' allows at most {maximum} selection(s)"
            )
        if count < customization.min_selections:
            raise InvalidCustomization(
                f"Customization '{customization.name}' requires at least "
                f"{customization.min_selections} selection(s)"
            )


def option_ids_of(customizations) -> frozenset:
    """Set of selected option ids in a validated selection list."""
    return frozenset(
        str(option["option_id"])
        for customization in customizations or []
        for option in customization.get("selected_options") or []
    )


def line_subtotal(item_price, quantity) -> Decimal:
    return quantize(Decimal(item_price) * quantity)


class OrderCalculator:
    """
    Totals for Cart and Order lines.

    Works on any iterable of objects exposing ``subtotal`` and
    ``customizations`` (cart items, unsaved order items, order items).
    """

    def __init__(self, items: Iterable, order_type: str, discount=ZERO, tip=ZERO):
        self.items = list(items)
        self.order_type = order_type
        self.discount = quantize(discount or ZERO)
        self.tip = quantize(tip or ZERO)

    def calculate_subtotal(self) -> Decimal:
        return quantize(sum((Decimal(item.subtotal) for item in self.items), ZERO))

    def calculate_tax(self, subtotal: Optional[Decimal] = None) -> Decimal:
        if subtotal is None:
            subtotal = self.calculate_subtotal()
        return quantize(subtotal * pos_settings.tax_rate)

    def calculate_delivery_fee(self) -> Decimal:
        if self.order_type == "delivery":
            return quantize(pos_settings.delivery_fee)
        return ZERO

    def estimate_prep_time(self) -> int:
        """
        Minutes: max(10, lines x 5) + 2 per customization group, plus an
        order type adjustment, capped at 60. An empty set of lines is 0.
        """
        if not self.items:
            return 0

        prep_time = max(
            pos_settings.prep_time_minimum,
            len(self.items) * pos_settings.prep_time_per_item,
        )
        for item in self.items:
            prep_time += len(item.customizations or []) * pos_settings.prep_time_per_customization

        prep_time += pos_settings.prep_time_order_type_adjustment.get(self.order_type, 0)
        return min(prep_time, pos_settings.prep_time_maximum)

    def calculate_totals(self) -> Dict[str, Any]:
        """
        Returns subtotal, tax, delivery_fee, discount, tip, total and
        estimated_prep_time. total = subtotal + tax + delivery_fee + tip - discount.
        """
        subtotal = self.calculate_subtotal()
        tax = self.calculate_tax(subtotal)
        delivery_fee = self.calculate_delivery_fee()
        total = quantize(subtotal + tax + delivery_fee + self.tip - self.discount)

        return {
            "subtotal": subtotal,
            "tax": tax,
            "delivery_fee": delivery_fee,
            "discount": self.discount,
            "tip": self.tip,
            "total": total,
            "estimated_prep_time": self.estimate_prep_time(),
        }
