"""
Centralized access to the POS business rules (tax, delivery fee, cart TTL,
prep time and loyalty parameters) using a lazy singleton.

Values are read from ``settings.POS_SETTINGS`` on first access and reloaded
whenever that setting changes (e.g. ``override_settings`` in tests).
"""

from decimal import Decimal
from typing import Any, Dict, Optional
import logging

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.core.signals import setting_changed
from django.dispatch import receiver

logger = logging.getLogger(__name__)

LOYALTY_TIERS = ["bronze", "silver", "gold", "platinum"]


class POSSettings:
    """
    A LAZY singleton wrapping the POS_SETTINGS dict.
    Loading is deferred so importing services never touches settings early.
    """

    _instance: Optional["POSSettings"] = None
    _initialized: bool = False

    def __new__(cls) -> "POSSettings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def _setup(self):
        if not self._initialized:
            self.load_settings()
            self._initialized = True

    def __getattr__(self, name: str) -> Any:
        if not self._initialized:
            self._setup()
        try:
            return self.__dict__[name]
        except KeyError:
            raise AttributeError(f"'POSSettings' object has no attribute '{name}'")

    def load_settings(self) -> None:
        raw: Dict[str, Any] = getattr(settings, "POS_SETTINGS", None)
        if raw is None:
            raise ImproperlyConfigured("POS_SETTINGS is not defined")

        prep = raw["PREP_TIME"]
        loyalty = raw["LOYALTY"]

        self.tax_rate = Decimal(str(raw["TAX_RATE"]))
        self.delivery_fee = Decimal(str(raw["DELIVERY_FEE"]))
        self.cart_ttl_hours = int(raw["CART_TTL_HOURS"])

        self.prep_time_minimum = int(prep["MINIMUM"])
        self.prep_time_per_item = int(prep["PER_ITEM"])
        self.prep_time_per_customization = int(prep["PER_CUSTOMIZATION"])
        self.prep_time_maximum = int(prep["MAXIMUM"])
        self.prep_time_order_type_adjustment = dict(prep["ORDER_TYPE_ADJUSTMENT"])

        self.points_per_dollar = int(loyalty["POINTS_PER_DOLLAR"])
        self.tier_thresholds = dict(loyalty["TIER_THRESHOLDS"])
        self.tier_multipliers = {
            tier: Decimal(str(value)) for tier, value in loyalty["TIER_MULTIPLIERS"].items()
        }
        self.point_expiration_days = int(loyalty["POINT_EXPIRATION_DAYS"])
        self.redemption_value = Decimal(str(loyalty["REDEMPTION_VALUE"]))

        missing = [t for t in LOYALTY_TIERS if t not in self.tier_thresholds]
        if missing:
            raise ImproperlyConfigured(f"Missing loyalty tier thresholds: {missing}")

        logger.debug("POS settings loaded")

    def reload(self) -> None:
        for key in list(self.__dict__):
            del self.__dict__[key]
        self._initialized = False


pos_settings = POSSettings()


@receiver(setting_changed)
def reload_pos_settings(sender, setting, **kwargs):
    if setting == "POS_SETTINGS":
        pos_settings.reload()
