"""
Cart service layer for managing shopping cart operations.

This service handles:
- Cart creation and retrieval (authenticated users and guest sessions)
- Adding/updating/removing items, with identical lines merged
- Order settings (order type, delivery address, instructions)
- Converting a cart into an order draft at checkout
- Cart lifecycle management (expiry sweep)

Every mutation locks the cart row and recomputes the stored totals before
the transaction commits.
"""

from decimal import Decimal
from typing import Any, Dict, Optional
import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from core_backend.exceptions import Forbidden, InvalidOwner, NotFound, ValidationError
from menu.services import MenuItemService
from orders.calculators import OrderCalculator, PricingCalculator, line_subtotal, option_ids_of
from orders.drafts import OrderDraft, OrderDraftItem
from orders.models import OrderType
from payments.money import ZERO
from .models import Cart, CartItem

logger = logging.getLogger(__name__)


class CartService:
    """Service for managing cart operations."""

    @staticmethod
    def find_or_create(user=None, session_id: Optional[str] = None) -> Cart:
        """
        Get or create a cart for a user or guest session.

        The user wins when both are given. An expired cart is discarded and
        replaced by an empty one.

        Raises:
            InvalidOwner: If neither user nor session_id provided
        """
        if user is not None and not user.is_authenticated:
            user = None
        if user is None and not session_id:
            raise InvalidOwner()

        lookup = {"user": user} if user is not None else {"session_id": session_id}
        cart = Cart.objects.filter(**lookup).prefetch_related("items").first()

        if cart is not None and cart.is_expired():
            logger.info(f"Discarding expired cart {cart.id}")
            cart.delete()
            cart = None

        if cart is None:
            try:
                with transaction.atomic():
                    cart = Cart.objects.create(**lookup)
            except IntegrityError:
                # A concurrent request created the owner's cart first
                cart = Cart.objects.filter(**lookup).prefetch_related("items").first()
                if cart is None:
                    raise
                logger.info(f"Reusing cart {cart.id} created by a concurrent request")
            else:
                logger.info(f"Created new cart {cart.id} for {'user' if user else 'guest'}")

        return cart

    @staticmethod
    def _lock_owned(cart_id, user=None, session_id=None) -> Cart:
        """Lock the cart row and check ownership. Call inside a transaction."""
        try:
            cart = Cart.objects.select_for_update().get(pk=cart_id)
        except (Cart.DoesNotExist, DjangoValidationError, ValueError, TypeError):
            raise NotFound("Cart not found")
        if not cart.is_owned_by(user=user, session_id=session_id):
            raise Forbidden("You do not have access to this cart")
        return cart

    @staticmethod
    def recalculate(cart: Cart) -> Cart:
        """Recompute and store totals and the prep time estimate."""
        totals = OrderCalculator(cart.items.all(), cart.order_type, discount=ZERO).calculate_totals()
        cart.subtotal = totals["subtotal"]
        cart.tax = totals["tax"]
        cart.delivery_fee = totals["delivery_fee"]
        cart.discount = totals["discount"]
        cart.total = totals["total"]
        cart.estimated_prep_time = totals["estimated_prep_time"]
        cart.save(
            update_fields=[
                "subtotal",
                "tax",
                "delivery_fee",
                "discount",
                "total",
                "estimated_prep_time",
                "updated_at",
            ]
        )
        return cart

    @staticmethod
    @transaction.atomic
    def add_item(
        cart: Cart,
        menu_item_id,
        quantity: int = 1,
        customizations=None,
        special_instructions: str = "",
    ) -> Cart:
        """
        Add an item to the cart.

        The menu item must be orderable; selections are validated and priced
        by PricingCalculator. A line identical to an existing one (same menu
        item, same set of options, same instructions) merges by quantity.
        """
        if quantity is None or quantity < 1:
            raise ValidationError("Quantity must be at least 1")

        cart = Cart.objects.select_for_update().get(pk=cart.pk)
        menu_item = MenuItemService.find_available(menu_item_id)
        item_price, selections = PricingCalculator(menu_item).price(customizations)
        special_instructions = special_instructions or ""

        wanted_options = option_ids_of(selections)
        existing = None
        for item in cart.items.filter(menu_item_ref=menu_item.id):
            if (
                item.special_instructions == special_instructions
                and option_ids_of(item.customizations) == wanted_options
            ):
                existing = item
                break

        if existing is not None:
            existing.quantity += quantity
            existing.subtotal = line_subtotal(existing.item_price, existing.quantity)
            existing.save(update_fields=["quantity", "subtotal", "updated_at"])
            logger.info(f"Merged {quantity}x {menu_item.name} into cart item {existing.id}")
        else:
            CartItem.objects.create(
                cart=cart,
                menu_item=menu_item,
                menu_item_ref=menu_item.id,
                name=menu_item.name,
                base_price=menu_item.base_price,
                item_price=item_price,
                quantity=quantity,
                customizations=selections,
                special_instructions=special_instructions,
                subtotal=line_subtotal(item_price, quantity),
            )
            logger.info(f"Added {quantity}x {menu_item.name} to cart {cart.id}")

        return CartService.recalculate(cart)

    @staticmethod
    def _get_item(cart: Cart, item_id) -> CartItem:
        try:
            return cart.items.get(pk=item_id)
        except (CartItem.DoesNotExist, DjangoValidationError, ValueError, TypeError):
            raise NotFound("Cart item not found")

    @staticmethod
    @transaction.atomic
    def update_item(cart_id, item_id, data: Dict[str, Any], user=None, session_id=None) -> Cart:
        """Change quantity and/or special instructions of one line."""
        cart = CartService._lock_owned(cart_id, user=user, session_id=session_id)
        item = CartService._get_item(cart, item_id)

        update_fields = ["updated_at"]
        if "quantity" in data:
            quantity = data["quantity"]
            if quantity is None or quantity < 1:
                raise ValidationError("Quantity must be at least 1")
            item.quantity = quantity
            item.subtotal = line_subtotal(item.item_price, quantity)
            update_fields.extend(["quantity", "subtotal"])
        if "special_instructions" in data:
            item.special_instructions = data["special_instructions"] or ""
            update_fields.append("special_instructions")

        item.save(update_fields=update_fields)
        logger.info(f"Updated cart item {item.id} in cart {cart.id}")
        return CartService.recalculate(cart)

    @staticmethod
    @transaction.atomic
    def remove_item(cart_id, item_id, user=None, session_id=None) -> Cart:
        cart = CartService._lock_owned(cart_id, user=user, session_id=session_id)
        item = CartService._get_item(cart, item_id)
        item.delete()
        logger.info(f"Removed cart item {item_id} from cart {cart.id}")
        return CartService.recalculate(cart)

    @staticmethod
    @transaction.atomic
    def update_settings(cart_id, data: Dict[str, Any], user=None, session_id=None) -> Cart:
        """Order type, delivery address and special instructions."""
        cart = CartService._lock_owned(cart_id, user=user, session_id=session_id)

        update_fields = ["updated_at"]
        if "order_type" in data:
            if data["order_type"] not in OrderType.values:
                raise ValidationError(f"Invalid order type: {data['order_type']}")
            cart.order_type = data["order_type"]
            update_fields.append("order_type")
        if "delivery_address" in data:
            cart.delivery_address = data["delivery_address"]
            update_fields.append("delivery_address")
        if "special_instructions" in data:
            cart.special_instructions = data["special_instructions"] or ""
            update_fields.append("special_instructions")

        cart.save(update_fields=update_fields)
        return CartService.recalculate(cart)

    @staticmethod
    @transaction.atomic
    def clear(cart_id, user=None, session_id=None) -> Cart:
        cart = CartService._lock_owned(cart_id, user=user, session_id=session_id)
        deleted, _ = cart.items.all().delete()
        logger.info(f"Cleared {deleted} item(s) from cart {cart.id}")
        return CartService.recalculate(cart)

    @staticmethod
    @transaction.atomic
    def delete(cart_id, user=None, session_id=None) -> None:
        cart = CartService._lock_owned(cart_id, user=user, session_id=session_id)
        cart.delete()
        logger.info(f"Deleted cart {cart_id}")

    @staticmethod
    @transaction.atomic
    def convert_to_order_draft(cart_id, user) -> OrderDraft:
        """
        Freeze the cart into an OrderDraft.

        Guest carts cannot check out. Every line's menu item must still be
        orderable; the error names the first one that is not. The cart is
        left untouched.
        """
        if user is None or not user.is_authenticated:
            raise Forbidden("Sign in to check out")
        cart = CartService._lock_owned(cart_id, user=user)

        items = list(cart.items.all())
        if not items:
            raise ValidationError("Cart is empty")

        draft_items = []
        for item in items:
            MenuItemService.find_available(item.menu_item_ref, name=item.name)
            draft_items.append(
                OrderDraftItem(
                    menu_item_id=str(item.menu_item_ref),
                    quantity=item.quantity,
                    customizations=[
                        {
                            "customization_id": c["customization_id"],
                            "selected_options": [
                                {"option_id": o["option_id"]} for o in c.get("selected_options", [])
                            ],
                        }
                        for c in item.customizations or []
                    ],
                    special_instructions=item.special_instructions,
                )
            )

        return OrderDraft(
            items=draft_items,
            order_type=cart.order_type,
            delivery_address=cart.delivery_address,
            special_instructions=cart.special_instructions,
        )

    @staticmethod
    @transaction.atomic
    def checkout(cart_id, user, tip: Decimal = ZERO, loyalty_points_to_use: int = 0,
                 scheduled_for=None):
        """
        Convert the cart into an order and delete the cart, in one
        transaction. Returns the new order.
        """
        from orders.services import OrderService

        draft = CartService.convert_to_order_draft(cart_id, user)
        draft.tip = tip or ZERO
        draft.loyalty_points_to_use = loyalty_points_to_use or 0
        draft.scheduled_for = scheduled_for

        order = OrderService.create(draft, user)
        Cart.objects.filter(pk=cart_id).delete()

        logger.info(f"Checked out cart {cart_id} as order {order.order_number}")
        return order

    @staticmethod
    def cleanup_expired(now=None, dry_run: bool = False) -> int:
        """
        Delete carts whose expires_at has passed.

        Returns:
            Number of carts deleted (or that would be deleted on a dry run)
        """
        expired = Cart.objects.filter(expires_at__lte=now or timezone.now())
        count = expired.count()
        if not dry_run:
            expired.delete()

        logger.info(f"{'Found' if dry_run else 'Cleaned up'} {count} expired cart(s)")
        return count
