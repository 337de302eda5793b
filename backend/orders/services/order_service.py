from decimal import Decimal
import logging
import math

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.utils import timezone

from core_backend.exceptions import (
    BadRequest,
    Forbidden,
    InvalidStaff,
    InvalidStatusTransition,
    NotFound,
    ValidationError,
)
from menu.services import MenuItemService
from orders.calculators import OrderCalculator, PricingCalculator, line_subtotal
from orders.drafts import OrderDraft
from orders.filters import KitchenOrderFilter, OrderFilter
from orders.models import Order, OrderItem, OrderStatus, OrderTimelineEntry, OrderType
from orders.signals import order_completed, order_created, order_status_changed
from payments.money import ZERO, quantize
from users.models import User
from users.permissions import ensure_admin, ensure_staff
from users.services import UserLookupService

logger = logging.getLogger(__name__)

RATING_FIELDS = ("overall", "food", "service", "delivery")


class OrderService:
    """Core service for order lifecycle management - creating, transitioning, rating orders."""

    # Valid status transitions for order state machine
    VALID_STATUS_TRANSITIONS = {
        OrderStatus.PENDING: [OrderStatus.CONFIRMED, OrderStatus.CANCELLED],
        OrderStatus.CONFIRMED: [OrderStatus.PREPARING, OrderStatus.CANCELLED],
        OrderStatus.PREPARING: [OrderStatus.READY, OrderStatus.CANCELLED],
        OrderStatus.READY: [OrderStatus.COMPLETED, OrderStatus.OUT_FOR_DELIVERY],
        OrderStatus.OUT_FOR_DELIVERY: [OrderStatus.COMPLETED],
        OrderStatus.COMPLETED: [],
        OrderStatus.CANCELLED: [],
    }

    KITCHEN_STATUSES = [
        OrderStatus.PENDING,
        OrderStatus.CONFIRMED,
        OrderStatus.PREPARING,
        OrderStatus.READY,
    ]

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    @staticmethod
    def _get(order_id, for_update=False) -> Order:
        queryset = Order.objects.all()
        if for_update:
            queryset = queryset.select_for_update()
        try:
            return queryset.get(pk=order_id)
        except (Order.DoesNotExist, DjangoValidationError, ValueError, TypeError):
            raise NotFound("Order not found")

    @staticmethod
    def find_by_id(order_id) -> Order:
        try:
            return (
                Order.objects.select_related("user", "assigned_to_staff")
                .prefetch_related("items", "timeline")
                .get(pk=order_id)
            )
        except (Order.DoesNotExist, DjangoValidationError, ValueError, TypeError):
            raise NotFound("Order not found")

    @staticmethod
    def find_by_order_number(order_number) -> Order:
        try:
            return (
                Order.objects.select_related("user", "assigned_to_staff")
                .prefetch_related("items", "timeline")
                .get(order_number=order_number)
            )
        except Order.DoesNotExist:
            raise NotFound("Order not found")

    @staticmethod
    def find_for_actor(order_id, actor) -> Order:
        """Customers may only see their own orders; staff see all."""
        order = OrderService.find_by_id(order_id)
        if actor.role == User.Role.CUSTOMER and order.user_id != actor.id:
            raise NotFound("Order not found")
        return order

    @staticmethod
    def find_all(actor, params=None):
        """
        Filtered order list. Customers are always restricted to their own
        orders regardless of the ``user`` filter.
        """
        queryset = Order.objects.select_related("user", "assigned_to_staff").prefetch_related("items")
        if actor.role == User.Role.CUSTOMER:
            queryset = queryset.filter(user=actor)
        return OrderFilter(params or {}, queryset=queryset).qs

    @staticmethod
    def find_kitchen_orders(actor, params=None):
        """Active orders for the kitchen display, oldest first."""
        ensure_staff(actor)
        queryset = (
            Order.objects.filter(status__in=OrderService.KITCHEN_STATUSES)
            .select_related("assigned_to_staff")
            .prefetch_related("items")
            .order_by("created_at")
        )
        return KitchenOrderFilter(params or {}, queryset=queryset).qs

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    @staticmethod
    def build_items(draft: OrderDraft):
        """
        Re-validate and re-price every draft line from the live menu.
        Returns unsaved OrderItem instances.
        """
        if not draft.items:
            raise ValidationError("Order must contain at least one item")

        items = []
        for position, draft_item in enumerate(draft.items):
            if draft_item.quantity < 1:
                raise ValidationError("Quantity must be at least 1")

            menu_item = MenuItemService.find_available(draft_item.menu_item_id)
            item_price, customizations = PricingCalculator(menu_item).price(
                draft_item.customizations
            )
            items.append(
                OrderItem(
                    menu_item=menu_item,
                    menu_item_ref=menu_item.id,
                    name=menu_item.name,
                    base_price=menu_item.base_price,
                    item_price=item_price,
                    quantity=draft_item.quantity,
                    customizations=customizations,
                    special_instructions=draft_item.special_instructions or "",
                    subtotal=line_subtotal(item_price, draft_item.quantity),
                    position=position,
                )
            )
        return items

    @staticmethod
    @transaction.atomic
    def create(draft: OrderDraft, user) -> Order:
        """
        Create a PENDING order from a draft.

        Items are priced server side. Loyalty points requested on the draft
        are redeemed in the same transaction and become the discount.
        """
        if user is None or not user.is_active:
            raise NotFound("User not found")

        if draft.order_type not in OrderType.values:
            raise ValidationError(f"Invalid order type: {draft.order_type}")
        if draft.order_type == OrderType.DELIVERY and not draft.delivery_address:
            raise ValidationError("Delivery address is required for delivery orders")

        tip = quantize(draft.tip or ZERO)
        if tip < 0:
            raise ValidationError("Tip cannot be negative")

        items = OrderService.build_items(draft)

        points_to_use = int(draft.loyalty_points_to_use or 0)
        if points_to_use < 0:
            raise ValidationError("Loyalty points to use cannot be negative")
        discount = ZERO
        if points_to_use:
            from loyalty.services import LoyaltyService

            discount = quantize(LoyaltyService.calculate_redemption_value(points_to_use))
            subtotal = OrderCalculator(items, draft.order_type).calculate_subtotal()
            if discount > subtotal:
                raise ValidationError("Loyalty discount cannot exceed the order subtotal")

        totals = OrderCalculator(items, draft.order_type, discount=discount, tip=tip).calculate_totals()

        order = Order(
            user=user,
            order_type=draft.order_type,
            delivery_address=draft.delivery_address if draft.order_type == OrderType.DELIVERY else None,
            special_instructions=draft.special_instructions or "",
            scheduled_for=draft.scheduled_for,
            subtotal=totals["subtotal"],
            tax=totals["tax"],
            tip=totals["tip"],
            delivery_fee=totals["delivery_fee"],
            discount=totals["discount"],
            total=totals["total"],
            estimated_prep_time=totals["estimated_prep_time"],
            loyalty_points_used=points_to_use,
        )
        order.save()

        for item in items:
            item.order = order
        OrderItem.objects.bulk_create(items)

        OrderTimelineEntry.objects.create(
            order=order, status=OrderStatus.PENDING, notes="Order created"
        )

        if points_to_use:
            from loyalty.services import LoyaltyService

            LoyaltyService.redeem_points(
                user,
                points_to_use,
                order_id=order.id,
                description=f"Redeemed {points_to_use} points on order #{order.order_number}",
            )

        sold = {}
        for item in items:
            sold[item.menu_item_ref] = sold.get(item.menu_item_ref, 0) + item.quantity
        MenuItemService.increment_sold_counts(sold)

        logger.info(
            f"Created order {order.order_number} for user {user.id}: "
            f"{len(items)} line(s), total {order.total}"
        )
        transaction.on_commit(lambda: order_created.send(sender=Order, order=order))
        return order

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    @staticmethod
    def validate_transition(current_status, new_status):
        if new_status not in OrderService.VALID_STATUS_TRANSITIONS.get(current_status, []):
            raise InvalidStatusTransition(current_status, new_status)

    @staticmethod
    def apply_transition(order: Order, new_status, staff=None, notes="") -> Order:
        """
        Move a locked order to ``new_status`` and append one timeline entry.

        Callers must hold the row lock (select_for_update) inside a
        transaction. Raises InvalidStatusTransition before any write.
        """
        OrderService.validate_transition(order.status, new_status)

        previous_status = order.status
        now = timezone.now()
        order.status = new_status
        update_fields = ["status", "updated_at"]

        if new_status == OrderStatus.COMPLETED and order.actual_prep_time is None:
            elapsed_minutes = (now - order.created_at).total_seconds() / 60
            order.actual_prep_time = max(0, math.floor(elapsed_minutes + 0.5))
            update_fields.append("actual_prep_time")

        order.save(update_fields=update_fields)
        OrderTimelineEntry.objects.create(
            order=order, status=new_status, timestamp=now, staff=staff, notes=notes or ""
        )

        if new_status == OrderStatus.CANCELLED and order.loyalty_points_used:
            from loyalty.services import LoyaltyService

            LoyaltyService.reverse_redemption(order)

        logger.info(
            f"Order {order.order_number} moved from {previous_status} to {new_status}"
            f"{f' by staff {staff.id}' if staff else ''}"
        )

        transaction.on_commit(
            lambda: order_status_changed.send(
                sender=Order, order=order, previous_status=previous_status
            )
        )
        if new_status == OrderStatus.COMPLETED:
            transaction.on_commit(lambda: order_completed.send(sender=Order, order=order))
        return order

    @staticmethod
    @transaction.atomic
    def update_status(order_id, new_status, actor, notes=None) -> Order:
        ensure_staff(actor)
        if new_status not in OrderStatus.values:
            raise ValidationError(f"'{new_status}' is not a valid order status.")

        order = OrderService._get(order_id, for_update=True)
        return OrderService.apply_transition(order, new_status, staff=actor, notes=notes)

    @staticmethod
    @transaction.atomic
    def assign_staff(order_id, staff_id, actor) -> Order:
        ensure_staff(actor)
        try:
            staff = UserLookupService.find_active_by_id(staff_id)
        except NotFound:
            raise InvalidStaff()
        if staff.role != User.Role.KITCHEN_STAFF:
            raise InvalidStaff()

        order = OrderService._get(order_id, for_update=True)
        order.assigned_to_staff = staff
        order.save(update_fields=["assigned_to_staff", "updated_at"])
        OrderTimelineEntry.objects.create(
            order=order,
            status=order.status,
            staff=staff,
            notes=f"Assigned to {staff.first_name} {staff.last_name}",
        )

        logger.info(f"Order {order.order_number} assigned to staff {staff.id}")
        return order

    @staticmethod
    @transaction.atomic
    def add_rating(order_id, rating, actor) -> Order:
        """
        Owner-only rating of a completed order. A second rating overwrites
        the first.
        """
        order = OrderService._get(order_id, for_update=True)
        if order.user_id != actor.id:
            raise Forbidden("You can only rate your own orders")
        if order.status != OrderStatus.COMPLETED:
            raise BadRequest("You can only rate completed orders")

        for field in RATING_FIELDS:
            value = rating.get(field)
            if value is None:
                if field != "delivery":
                    raise ValidationError(f"Rating '{field}' is required")
                continue
            if not isinstance(value, int) or isinstance(value, bool) or not 1 <= value <= 5:
                raise ValidationError(f"Rating '{field}' must be between 1 and 5")

        order.rating_overall = rating["overall"]
        order.rating_food = rating["food"]
        order.rating_service = rating["service"]
        order.rating_delivery = rating.get("delivery")
        order.rating_comment = rating.get("comment") or ""
        order.rated_at = timezone.now()
        order.save(
            update_fields=[
                "rating_overall",
                "rating_food",
                "rating_service",
                "rating_delivery",
                "rating_comment",
                "rated_at",
                "updated_at",
            ]
        )
        logger.info(f"Order {order.order_number} rated {order.rating_overall}/5")
        return order

    @staticmethod
    @transaction.atomic
    def update(order_id, data, actor) -> Order:
        """
        Admin edit of the mutable fields: special instructions, scheduled
        time, actual prep time and tip. A tip change shifts the total by
        the difference. ``notes`` appends a timeline entry.
        """
        ensure_admin(actor)
        order = OrderService._get(order_id, for_update=True)
        update_fields = ["updated_at"]

        if "special_instructions" in data:
            order.special_instructions = data["special_instructions"] or ""
            update_fields.append("special_instructions")
        if "scheduled_for" in data:
            order.scheduled_for = data["scheduled_for"]
            update_fields.append("scheduled_for")
        if "actual_prep_time" in data:
            order.actual_prep_time = data["actual_prep_time"]
            update_fields.append("actual_prep_time")
        if "tip" in data:
            new_tip = quantize(data["tip"])
            if new_tip < 0:
                raise ValidationError("Tip cannot be negative")
            order.total = quantize(order.total + (new_tip - Decimal(order.tip)))
            order.tip = new_tip
            update_fields.extend(["tip", "total"])

        order.save(update_fields=update_fields)
        if data.get("notes"):
            OrderTimelineEntry.objects.create(
                order=order, status=order.status, staff=actor, notes=data["notes"]
            )
        logger.info(f"Order {order.order_number} updated by admin {actor.id}")
        return order

    @staticmethod
    @transaction.atomic
    def remove(order_id, actor) -> None:
        """Hard delete, allowed only while the order is still PENDING."""
        ensure_admin(actor)
        order = OrderService._get(order_id, for_update=True)
        if order.status != OrderStatus.PENDING:
            raise BadRequest("Only pending orders can be deleted")

        if order.loyalty_points_used:
            from loyalty.services import LoyaltyService

            LoyaltyService.reverse_redemption(order)

        order_number = order.order_number
        order.delete()
        logger.info(f"Deleted pending order {order_number}")
