import secrets
import string
import uuid
from datetime import timezone as dt_timezone

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import IntegrityError, models, transaction
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from core_backend.exceptions import Conflict

ORDER_NUMBER_ALPHABET = string.digits + string.ascii_uppercase
ORDER_NUMBER_MAX_RETRIES = 5


def generate_order_number(now=None):
    """ORD-YYYYMMDD-XXXX with the UTC date and 4 random base36 characters."""
    now = now or timezone.now()
    date_part = now.astimezone(dt_timezone.utc).strftime("%Y%m%d")
    suffix = "".join(secrets.choice(ORDER_NUMBER_ALPHABET) for _ in range(4))
    return f"ORD-{date_part}-{suffix}"


class OrderStatus(models.TextChoices):
    PENDING = "pending", _("Pending")
    CONFIRMED = "confirmed", _("Confirmed")
    PREPARING = "preparing", _("Preparing")
    READY = "ready", _("Ready")
    OUT_FOR_DELIVERY = "out_for_delivery", _("Out for Delivery")
    COMPLETED = "completed", _("Completed")
    CANCELLED = "cancelled", _("Cancelled")


class PaymentStatus(models.TextChoices):
    PENDING = "pending", _("Pending")
    PROCESSING = "processing", _("Processing")
    COMPLETED = "completed", _("Completed")
    FAILED = "failed", _("Failed")
    REFUNDED = "refunded", _("Refunded")
    PARTIALLY_REFUNDED = "partially_refunded", _("Partially Refunded")


class OrderType(models.TextChoices):
    PICKUP = "pickup", _("Pickup")
    DELIVERY = "delivery", _("Delivery")
    DINE_IN = "dine-in", _("Dine In")


class Order(models.Model):
    """
    A committed purchase created from a cart (or directly).

    Prices, totals and estimated prep time are frozen at creation. After that
    the order only changes through status transitions (each appends one
    OrderTimelineEntry), payment reconciliation, and a few staff-editable
    fields: assigned staff, actual prep time, rating.
    """

    # Kept on the class so callers can write Order.Status.PENDING
    Status = OrderStatus
    PaymentStatus = PaymentStatus
    OrderType = OrderType

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order_number = models.CharField(max_length=20, unique=True, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders",
    )

    status = models.CharField(
        max_length=20, choices=OrderStatus.choices, default=OrderStatus.PENDING
    )
    payment_status = models.CharField(
        max_length=20, choices=PaymentStatus.choices, default=PaymentStatus.PENDING
    )
    order_type = models.CharField(max_length=10, choices=OrderType.choices)

    # Frozen financials
    subtotal = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    tax = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    tip = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    delivery_fee = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    discount = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    total = models.DecimalField(max_digits=10, decimal_places=2, default=0)

    # Payment processor state
    payment_intent_id = models.CharField(
        max_length=255, blank=True, null=True, db_index=True
    )
    payment_error = models.TextField(blank=True, default="")
    payment_completed_at = models.DateTimeField(null=True, blank=True)
    refund_amount = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True
    )
    refunded_at = models.DateTimeField(null=True, blank=True)

    delivery_address = models.JSONField(null=True, blank=True)
    special_instructions = models.TextField(blank=True, default="")

    estimated_prep_time = models.PositiveIntegerField(default=0)
    actual_prep_time = models.PositiveIntegerField(null=True, blank=True)
    scheduled_for = models.DateTimeField(null=True, blank=True)
    assigned_to_staff = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="assigned_orders",
    )

    loyalty_points_earned = models.PositiveIntegerField(default=0)
    loyalty_points_used = models.PositiveIntegerField(default=0)

    # Customer rating (overwritten on re-rate)
    rating_overall = models.PositiveSmallIntegerField(
        null=True, blank=True, validators=[MinValueValidator(1), MaxValueValidator(5)]
    )
    rating_food = models.PositiveSmallIntegerField(
        null=True, blank=True, validators=[MinValueValidator(1), MaxValueValidator(5)]
    )
    rating_service = models.PositiveSmallIntegerField(
        null=True, blank=True, validators=[MinValueValidator(1), MaxValueValidator(5)]
    )
    rating_delivery = models.PositiveSmallIntegerField(
        null=True, blank=True, validators=[MinValueValidator(1), MaxValueValidator(5)]
    )
    rating_comment = models.TextField(blank=True, default="")
    rated_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "created_at"]),
            models.Index(fields=["status", "created_at"]),
            models.Index(fields=["payment_status"]),
        ]

    def __str__(self):
        return f"Order {self.order_number} ({self.order_type}) - {self.status}"

    @property
    def is_rated(self):
        return self.rated_at is not None

    def save(self, *args, **kwargs):
        if self.order_number:
            return super().save(*args, **kwargs)

        # Regenerate on the rare collision; each attempt runs in a savepoint so
        # a unique violation does not poison the caller's transaction.
        for _ in range(ORDER_NUMBER_MAX_RETRIES):
            self.order_number = generate_order_number(self.created_at)
            try:
                with transaction.atomic():
                    return super().save(*args, **kwargs)
            except IntegrityError:
                if not Order.objects.filter(order_number=self.order_number).exists():
                    raise
                self.order_number = ""
        raise Conflict("Failed to generate a unique order number after multiple retries.")


class OrderItem(models.Model):
    """Frozen line item: name, prices and selections copied at order time."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    menu_item = models.ForeignKey(
        "menu.MenuItem",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="order_items",
    )
    menu_item_ref = models.UUIDField(
        help_text=_("Menu item id at order time; survives menu item deletion.")
    )
    name = models.CharField(max_length=200)
    base_price = models.DecimalField(max_digits=10, decimal_places=2)
    item_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text=_("Base price plus customization modifiers, at order time."),
    )
    quantity = models.PositiveIntegerField(default=1)
    customizations = models.JSONField(default=list, blank=True)
    special_instructions = models.TextField(blank=True, default="")
    subtotal = models.DecimalField(max_digits=10, decimal_places=2)
    position = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["position"]

    def __str__(self):
        return f"{self.quantity} of {self.name} in Order {self.order.order_number}"


class OrderTimelineEntry(models.Model):
    """Append-only audit entry; one per status change plus staff notes."""

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="timeline")
    status = models.CharField(max_length=20, choices=OrderStatus.choices)
    timestamp = models.DateTimeField(default=timezone.now)
    staff = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    notes = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["timestamp", "id"]
        verbose_name_plural = _("Order timeline entries")

    def __str__(self):
        return f"{self.order.order_number}: {self.status} at {self.timestamp:%Y-%m-%d %H:%M}"
