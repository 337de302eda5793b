"""
Order lifecycle tests.

These tests verify order creation (server-side re-pricing, totals, order
numbers), the status state machine with its timeline, staff assignment,
ratings, admin edits and deletion.
"""
import itertools
import re
import pytest
from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

from django.utils import timezone

from core_backend.exceptions import (
    BadRequest,
    Conflict,
    Forbidden,
    InvalidStaff,
    InvalidStatusTransition,
    NotFound,
    Unavailable,
    ValidationError,
)
from core_backend.tests.fixtures import DELIVERY_ADDRESS, make_draft, selection
from menu.models import MenuItem
from orders.models import Order, OrderStatus, generate_order_number
from orders.services import OrderService


@pytest.mark.django_db
class TestOrderCreation:
    """Order creation re-prices every line and freezes the totals"""

    def test_create_pickup_order(self, pending_order, margherita):
        """
        CRITICAL: 2x Margherita Large, pickup

        Business Impact: frozen totals are what the customer is charged
        """
        order = pending_order

        assert order.status == Order.Status.PENDING, "New orders start PENDING"
        assert order.payment_status == Order.PaymentStatus.PENDING
        assert order.subtotal == Decimal("41.98"), f"Subtotal incorrect: {order.subtotal}"
        assert order.tax == Decimal("3.36"), f"Tax incorrect: {order.tax}"
        assert order.delivery_fee == Decimal("0.00")
        assert order.total == Decimal("45.34"), f"Total incorrect: {order.total}"
        assert order.estimated_prep_time == 12

        item = order.items.get()
        assert item.name == "Margherita Pizza"
        assert item.item_price == Decimal("20.99")
        assert item.quantity == 2
        assert item.menu_item_ref == margherita.id

        timeline = list(order.timeline.all())
        assert len(timeline) == 1, "Creation appends exactly one timeline entry"
        assert timeline[0].status == OrderStatus.PENDING
        assert timeline[0].notes == "Order created"

    def test_order_number_format(self, pending_order):
        assert re.fullmatch(r"ORD-\d{8}-[0-9A-Z]{4}", pending_order.order_number), (
            f"Unexpected order number {pending_order.order_number}"
        )

    def test_delivery_order_with_tip(self, customer, margherita, size_customization, large_option):
        draft = make_draft(
            margherita,
            quantity=2,
            customizations=[selection(size_customization, large_option)],
            order_type="delivery",
            delivery_address=DELIVERY_ADDRESS,
            tip=Decimal("5.00"),
        )
        order = OrderService.create(draft, customer)

        assert order.delivery_fee == Decimal("3.99")
        assert order.tip == Decimal("5.00")
        assert order.total == Decimal("54.33"), "49.33 + 5.00 tip"
        assert order.estimated_prep_time == 32
        assert order.delivery_address == DELIVERY_ADDRESS

    def test_delivery_requires_address(self, customer, margherita):
        with pytest.raises(ValidationError):
            OrderService.create(make_draft(margherita, order_type="delivery"), customer)
        assert Order.objects.count() == 0

    def test_empty_draft_rejected(self, customer, margherita):
        draft = make_draft(margherita)
        draft.items = []
        with pytest.raises(ValidationError):
            OrderService.create(draft, customer)

    def test_unavailable_item_rejected(self, customer, sold_out_item):
        with pytest.raises(Unavailable) as exc_info:
            OrderService.create(make_draft(sold_out_item), customer)
        assert "Tiramisu" in str(exc_info.value), "Error should name the item"
        assert Order.objects.count() == 0, "No partial order on failure"

    def test_prices_come_from_menu(self, customer, margherita):
        """A price change after drafting is picked up at creation"""
        draft = make_draft(margherita)
        margherita.base_price = Decimal("18.00")
        margherita.save()

        order = OrderService.create(draft, customer)
        assert order.subtotal == Decimal("18.00")

    def test_sold_count_incremented(self, customer, margherita, garlic_bread):
        OrderService.create(make_draft(margherita, quantity=3), customer)
        margherita.refresh_from_db()
        assert margherita.sold_count == 3

    def test_order_created_signal_after_commit(
        self, customer, margherita, django_capture_on_commit_callbacks
    ):
        with patch("notifications.services.notification_service.order_created") as mock_notify:
            with django_capture_on_commit_callbacks(execute=True) as callbacks:
                order = OrderService.create(make_draft(margherita), customer)

        assert len(callbacks) == 1
        mock_notify.assert_called_once_with(order)

    def test_order_number_collision_retries(self, pending_order, customer, margherita):
        taken = pending_order.order_number
        numbers = iter([taken, "ORD-20260101-ZZZZ"])
        with patch("orders.models.generate_order_number", side_effect=lambda now=None: next(numbers)):
            order = OrderService.create(make_draft(margherita), customer)
        assert order.order_number == "ORD-20260101-ZZZZ"

    def test_order_number_gives_up_after_retries(self, pending_order, customer, margherita):
        taken = pending_order.order_number
        with patch("orders.models.generate_order_number", return_value=taken):
            with pytest.raises(Conflict):
                OrderService.create(make_draft(margherita), customer)

    def test_generate_order_number_uses_utc_date(self):
        from datetime import datetime, timezone as dt_timezone

        now = datetime(2026, 3, 5, 23, 30, tzinfo=dt_timezone.utc)
        assert generate_order_number(now).startswith("ORD-20260305-")


@pytest.mark.django_db
class TestStatusTransitions:
    """Fixed state machine; every change appends one timeline entry"""

    def test_full_pickup_flow(self, pending_order, kitchen_staff):
        for status in ["confirmed", "preparing", "ready", "completed"]:
            OrderService.update_status(pending_order.id, status, kitchen_staff)

        pending_order.refresh_from_db()
        assert pending_order.status == OrderStatus.COMPLETED
        statuses = list(pending_order.timeline.values_list("status", flat=True))
        assert statuses == ["pending", "confirmed", "preparing", "ready", "completed"]

    def test_delivery_flow(self, pending_order, kitchen_staff):
        for status in ["confirmed", "preparing", "ready", "out_for_delivery", "completed"]:
            OrderService.update_status(pending_order.id, status, kitchen_staff)
        pending_order.refresh_from_db()
        assert pending_order.status == OrderStatus.COMPLETED

    def test_every_invalid_pair_rejected(self, pending_order, pos_admin):
        """
        CRITICAL: every status pair outside the table fails and leaves the
        order and its timeline unchanged
        """
        transitions = OrderService.VALID_STATUS_TRANSITIONS
        for current, requested in itertools.product(OrderStatus.values, repeat=2):
            if requested in transitions[current]:
                continue
            Order.objects.filter(pk=pending_order.pk).update(status=current)
            entries_before = pending_order.timeline.count()

            with pytest.raises(InvalidStatusTransition):
                OrderService.update_status(pending_order.id, requested, pos_admin)

            pending_order.refresh_from_db()
            assert pending_order.status == current, f"{current} -> {requested} changed status"
            assert pending_order.timeline.count() == entries_before, (
                f"{current} -> {requested} appended a timeline entry"
            )

    def test_timeline_records_staff_and_notes(self, pending_order, kitchen_staff):
        OrderService.update_status(pending_order.id, "confirmed", kitchen_staff, notes="On it")
        entry = pending_order.timeline.last()
        assert entry.staff == kitchen_staff
        assert entry.notes == "On it"

    def test_timeline_timestamps_non_decreasing(self, pending_order, kitchen_staff):
        for status in ["confirmed", "preparing", "ready"]:
            OrderService.update_status(pending_order.id, status, kitchen_staff)
        stamps = list(pending_order.timeline.values_list("timestamp", flat=True))
        assert stamps == sorted(stamps)

    def test_completion_sets_actual_prep_time(self, pending_order, kitchen_staff):
        """PREPARING -> READY -> COMPLETED with no actual prep time auto-sets it"""
        Order.objects.filter(pk=pending_order.pk).update(
            status=OrderStatus.PREPARING,
            created_at=timezone.now() - timedelta(minutes=25, seconds=40),
        )
        OrderService.update_status(pending_order.id, "ready", kitchen_staff)
        OrderService.update_status(pending_order.id, "completed", kitchen_staff)

        pending_order.refresh_from_db()
        assert pending_order.actual_prep_time == 26, "25m40s rounds to 26 minutes"

    def test_completion_keeps_existing_prep_time(self, pending_order, kitchen_staff):
        Order.objects.filter(pk=pending_order.pk).update(
            status=OrderStatus.READY, actual_prep_time=14
        )
        OrderService.update_status(pending_order.id, "completed", kitchen_staff)
        pending_order.refresh_from_db()
        assert pending_order.actual_prep_time == 14

    def test_customer_cannot_change_status(self, pending_order, customer):
        with pytest.raises(Forbidden):
            OrderService.update_status(pending_order.id, "confirmed", customer)

    def test_inactive_staff_cannot_change_status(self, pending_order, kitchen_staff):
        kitchen_staff.is_active = False
        kitchen_staff.save()
        with pytest.raises(Forbidden):
            OrderService.update_status(pending_order.id, "confirmed", kitchen_staff)

    def test_unknown_order(self, kitchen_staff):
        with pytest.raises(NotFound):
            OrderService.update_status("00000000-0000-0000-0000-000000000000", "confirmed", kitchen_staff)

    def test_signals_sent_after_commit(
        self, pending_order, kitchen_staff, django_capture_on_commit_callbacks
    ):
        Order.objects.filter(pk=pending_order.pk).update(status=OrderStatus.READY)
        with patch("notifications.services.notification_service.order_status_changed") as mock_notify:
            with django_capture_on_commit_callbacks(execute=True) as callbacks:
                OrderService.update_status(pending_order.id, "completed", kitchen_staff)

        assert len(callbacks) == 2, "status_changed and order_completed"
        args = mock_notify.call_args.args
        assert args[1] == OrderStatus.READY, "Previous status is passed to the sink"


@pytest.mark.django_db
class TestStaffAssignment:
    def test_assign_kitchen_staff(self, pending_order, pos_admin, kitchen_staff):
        order = OrderService.assign_staff(pending_order.id, kitchen_staff.id, pos_admin)

        assert order.assigned_to_staff == kitchen_staff
        assert order.status == OrderStatus.PENDING, "Assignment does not change status"
        entry = order.timeline.last()
        assert entry.notes == "Assigned to Sam Cook"

    def test_assignee_must_be_kitchen_staff(self, pending_order, pos_admin, customer):
        with pytest.raises(InvalidStaff):
            OrderService.assign_staff(pending_order.id, customer.id, pos_admin)

    def test_unknown_assignee(self, pending_order, pos_admin):
        with pytest.raises(InvalidStaff):
            OrderService.assign_staff(pending_order.id, 987654, pos_admin)

    def test_customer_cannot_assign(self, pending_order, customer, kitchen_staff):
        with pytest.raises(Forbidden):
            OrderService.assign_staff(pending_order.id, kitchen_staff.id, customer)

    def test_staff_deletion_clears_assignment(self, pending_order, pos_admin, kitchen_staff):
        OrderService.assign_staff(pending_order.id, kitchen_staff.id, pos_admin)
        kitchen_staff.delete()
        pending_order.refresh_from_db()
        assert pending_order.assigned_to_staff is None


@pytest.mark.django_db
class TestRatings:
    RATING = {"overall": 5, "food": 4, "service": 5, "comment": "Great crust"}

    def complete(self, order):
        Order.objects.filter(pk=order.pk).update(status=OrderStatus.COMPLETED)

    def test_owner_rates_completed_order(self, pending_order, customer):
        self.complete(pending_order)
        order = OrderService.add_rating(pending_order.id, self.RATING, customer)

        assert order.rating_overall == 5
        assert order.rating_food == 4
        assert order.rating_delivery is None
        assert order.rating_comment == "Great crust"
        assert order.rated_at is not None

    def test_rating_overwrites(self, pending_order, customer):
        self.complete(pending_order)
        OrderService.add_rating(pending_order.id, self.RATING, customer)
        order = OrderService.add_rating(
            pending_order.id, {"overall": 2, "food": 2, "service": 3, "delivery": 1}, customer
        )
        assert order.rating_overall == 2
        assert order.rating_delivery == 1
        assert order.rating_comment == "", "A re-rate replaces the comment too"

    def test_non_owner_forbidden(self, pending_order, other_customer):
        self.complete(pending_order)
        with pytest.raises(Forbidden):
            OrderService.add_rating(pending_order.id, self.RATING, other_customer)

    def test_only_completed_orders(self, pending_order, customer):
        with pytest.raises(BadRequest):
            OrderService.add_rating(pending_order.id, self.RATING, customer)

    @pytest.mark.parametrize("value", [0, 6])
    def test_out_of_range(self, pending_order, customer, value):
        self.complete(pending_order)
        with pytest.raises(ValidationError):
            OrderService.add_rating(
                pending_order.id, {"overall": value, "food": 3, "service": 3}, customer
            )


@pytest.mark.django_db
class TestAdminOperations:
    def test_remove_pending_order(self, pending_order, pos_admin):
        OrderService.remove(pending_order.id, pos_admin)
        assert not Order.objects.filter(pk=pending_order.pk).exists()

    def test_remove_non_pending_rejected(self, pending_order, pos_admin):
        Order.objects.filter(pk=pending_order.pk).update(status=OrderStatus.CONFIRMED)
        with pytest.raises(BadRequest):
            OrderService.remove(pending_order.id, pos_admin)
        assert Order.objects.filter(pk=pending_order.pk).exists()

    def test_remove_requires_admin(self, pending_order, kitchen_staff):
        with pytest.raises(Forbidden):
            OrderService.remove(pending_order.id, kitchen_staff)

    def test_tip_change_shifts_total(self, pending_order, pos_admin):
        order = OrderService.update(pending_order.id, {"tip": Decimal("4.00")}, pos_admin)
        assert order.tip == Decimal("4.00")
        assert order.total == Decimal("49.34"), "45.34 + 4.00"

        order = OrderService.update(pending_order.id, {"tip": Decimal("1.00")}, pos_admin)
        assert order.total == Decimal("46.34")

    def test_update_with_notes_appends_timeline(self, pending_order, pos_admin):
        OrderService.update(
            pending_order.id, {"special_instructions": "Ring twice", "notes": "Called customer"}, pos_admin
        )
        pending_order.refresh_from_db()
        assert pending_order.special_instructions == "Ring twice"
        assert pending_order.timeline.last().notes == "Called customer"


@pytest.mark.django_db
class TestOrderQueries:
    def test_customer_sees_only_own_orders(self, pending_order, other_customer, margherita):
        OrderService.create(make_draft(margherita), other_customer)

        mine = OrderService.find_all(pending_order.user)
        assert list(mine) == [pending_order]

        # The user filter cannot widen a customer's scope
        scoped = OrderService.find_all(other_customer, {"user": pending_order.user_id})
        assert scoped.count() == 0

    def test_staff_filters(self, pending_order, kitchen_staff, other_customer, margherita):
        other = OrderService.create(make_draft(margherita, order_type="dine-in"), other_customer)

        assert OrderService.find_all(kitchen_staff).count() == 2
        assert list(OrderService.find_all(kitchen_staff, {"order_type": "dine-in"})) == [other]
        assert list(
            OrderService.find_all(kitchen_staff, {"search": pending_order.order_number})
        ) == [pending_order]
        assert OrderService.find_all(kitchen_staff, {"search": "margherita"}).count() == 2

    def test_kitchen_orders_oldest_first(self, pending_order, kitchen_staff, customer, margherita):
        newer = OrderService.create(make_draft(margherita), customer)
        done = OrderService.create(make_draft(margherita), customer)
        Order.objects.filter(pk=done.pk).update(status=OrderStatus.COMPLETED)
        Order.objects.filter(pk=pending_order.pk).update(
            created_at=timezone.now() - timedelta(minutes=10)
        )

        orders = list(OrderService.find_kitchen_orders(kitchen_staff))
        assert orders == [pending_order, newer], "Active orders only, oldest first"

    def test_kitchen_orders_require_staff(self, customer):
        with pytest.raises(Forbidden):
            OrderService.find_kitchen_orders(customer)

    def test_find_by_order_number(self, pending_order):
        assert OrderService.find_by_order_number(pending_order.order_number) == pending_order
        with pytest.raises(NotFound):
            OrderService.find_by_order_number("ORD-00000000-NONE")

    def test_order_survives_menu_item_deletion(self, pending_order, margherita):
        MenuItem.objects.filter(pk=margherita.pk).delete()
        item = pending_order.items.get()
        assert item.menu_item is None
        assert item.menu_item_ref == margherita.id
        assert item.name == "Margherita Pizza"
