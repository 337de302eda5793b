from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _


class LoyaltyTier(models.TextChoices):
    BRONZE = "bronze", _("Bronze")
    SILVER = "silver", _("Silver")
    GOLD = "gold", _("Gold")
    PLATINUM = "platinum", _("Platinum")


class TransactionType(models.TextChoices):
    EARNED = "earned", _("Earned")
    REDEEMED = "redeemed", _("Redeemed")
    EXPIRED = "expired", _("Expired")
    BONUS = "bonus", _("Bonus")


class LoyaltyAccount(models.Model):
    """
    Per-user points balance, created on first access.

    ``total_points`` is the spendable balance and always equals the signed
    sum of the account's transactions. ``points_earned`` and ``points_used``
    are lifetime gross counters; the tier is derived from ``points_earned``.
    """

    Tier = LoyaltyTier

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="loyalty_account",
    )
    total_points = models.IntegerField(default=0)
    points_earned = models.PositiveIntegerField(default=0)
    points_used = models.PositiveIntegerField(default=0)
    tier = models.CharField(
        max_length=10, choices=LoyaltyTier.choices, default=LoyaltyTier.BRONZE
    )
    tier_progress = models.PositiveSmallIntegerField(
        default=0, help_text=_("Percent progress toward the next tier (0-100).")
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.user_id}: {self.total_points} pts ({self.tier})"


class LoyaltyTransaction(models.Model):
    """Append-only ledger row. Points are signed: redemptions and expiries are negative."""

    Type = TransactionType

    account = models.ForeignKey(
        LoyaltyAccount, on_delete=models.CASCADE, related_name="transactions"
    )
    type = models.CharField(max_length=10, choices=TransactionType.choices)
    points = models.IntegerField()
    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="loyalty_transactions",
    )
    description = models.CharField(max_length=255, blank=True, default="")
    expires_at = models.DateTimeField(null=True, blank=True, db_index=True)
    offsets = models.OneToOneField(
        "self",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="offset_by",
        help_text=_("The earned or bonus transaction this expiry cancels."),
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["account", "type"]),
        ]

    def __str__(self):
        return f"{self.type} {self.points:+d} for account {self.account_id}"
