import uuid
from datetime import timedelta

from django.conf import settings
from django.db import models
from django.utils import timezone

from orders.models import OrderType


def default_expires_at():
    from core_backend.config import pos_settings

    return timezone.now() + timedelta(hours=pos_settings.cart_ttl_hours)


class Cart(models.Model):
    """
    Ephemeral shopping cart for building orders.

    Lifecycle:
    1. Created on first read or "Add to Cart" for a user or a guest session
    2. Modified as the customer shops; every mutation recomputes the stored
       totals and prep time estimate
    3. Converted to an order draft at checkout (authenticated owners only)
    4. Deleted after the order is created, or by the expiry sweep

    Exactly one of ``user`` and ``session_id`` is set.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="cart",
    )
    session_id = models.CharField(
        max_length=100,
        null=True,
        blank=True,
        unique=True,
        help_text="Session identifier for guest users",
    )

    order_type = models.CharField(
        max_length=10, choices=OrderType.choices, default=OrderType.PICKUP
    )
    delivery_address = models.JSONField(null=True, blank=True)
    special_instructions = models.TextField(blank=True, default="")

    # Recomputed on every mutation
    subtotal = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    tax = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    delivery_fee = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    discount = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    total = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    estimated_prep_time = models.PositiveIntegerField(default=0)

    expires_at = models.DateTimeField(default=default_expires_at, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-updated_at"]
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(user__isnull=False, session_id__isnull=True)
                    | models.Q(user__isnull=True, session_id__isnull=False)
                ),
                name="cart_has_exactly_one_owner",
            ),
        ]

    def __str__(self):
        if self.user_id:
            return f"Cart for user {self.user_id}"
        return f"Guest Cart ({self.session_id[:8]}...)"

    @property
    def is_guest_cart(self):
        return self.user_id is None

    @property
    def item_count(self):
        """Total number of items in cart (sum of quantities)."""
        return sum(item.quantity for item in self.items.all())

    def is_owned_by(self, user=None, session_id=None):
        if self.user_id is not None:
            return user is not None and user.is_authenticated and user.id == self.user_id
        return bool(session_id) and session_id == self.session_id

    def is_expired(self, now=None):
        return self.expires_at <= (now or timezone.now())


class CartItem(models.Model):
    """
    One priced line in a cart. Name, prices and selections are snapshots
    taken when the line was added.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    cart = models.ForeignKey(Cart, on_delete=models.CASCADE, related_name="items")
    menu_item = models.ForeignKey(
        "menu.MenuItem",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="cart_items",
    )
    menu_item_ref = models.UUIDField()
    name = models.CharField(max_length=200)
    base_price = models.DecimalField(max_digits=10, decimal_places=2)
    item_price = models.DecimalField(max_digits=10, decimal_places=2)
    quantity = models.PositiveIntegerField(default=1)
    customizations = models.JSONField(default=list, blank=True)
    special_instructions = models.TextField(
        blank=True, default="", help_text="Customer notes (e.g., 'no onions')"
    )
    subtotal = models.DecimalField(max_digits=10, decimal_places=2)

    added_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["added_at", "id"]

    def __str__(self):
        return f"{self.quantity}x {self.name}"
