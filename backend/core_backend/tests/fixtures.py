"""
Shared test fixtures for all backend tests.

This module provides reusable pytest fixtures for common test objects
like users, menu items, carts and orders.
"""
import pytest
from decimal import Decimal

from users.models import User
from menu.models import MenuItem, Customization, CustomizationOption


# ============================================================================
# HELPERS
# ============================================================================

def selection(customization, *options):
    """Build one customization selection as the API receives it."""
    return {
        "customization_id": str(customization.id),
        "selected_options": [{"option_id": str(option.id)} for option in options],
    }


def make_draft(menu_item, quantity=1, customizations=None, order_type="pickup", **kwargs):
    """Build an OrderDraft with a single line."""
    from orders.drafts import OrderDraft, OrderDraftItem

    return OrderDraft(
        items=[
            OrderDraftItem(
                menu_item_id=str(menu_item.id),
                quantity=quantity,
                customizations=customizations or [],
            )
        ],
        order_type=order_type,
        **kwargs,
    )


DELIVERY_ADDRESS = {
    "street": "123 Main St",
    "city": "Springfield",
    "state": "IL",
    "zip_code": "62701",
}


# ============================================================================
# USER FIXTURES
# ============================================================================

@pytest.fixture
def customer(db):
    """Active customer"""
    return User.objects.create_user(
        email="customer@example.com",
        password="testpass123",
        first_name="Casey",
        last_name="Customer",
        role=User.Role.CUSTOMER,
    )


@pytest.fixture
def other_customer(db):
    """A second customer, for ownership checks"""
    return User.objects.create_user(
        email="other@example.com",
        password="testpass123",
        first_name="Robin",
        last_name="Other",
        role=User.Role.CUSTOMER,
    )


@pytest.fixture
def kitchen_staff(db):
    """Kitchen staff member"""
    return User.objects.create_user(
        email="kitchen@example.com",
        password="testpass123",
        first_name="Sam",
        last_name="Cook",
        role=User.Role.KITCHEN_STAFF,
    )


@pytest.fixture
def pos_admin(db):
    """Restaurant admin"""
    return User.objects.create_user(
        email="admin@example.com",
        password="testpass123",
        first_name="Alex",
        last_name="Admin",
        role=User.Role.ADMIN,
        is_staff=True,
    )


# ============================================================================
# MENU FIXTURES
# ============================================================================

@pytest.fixture
def margherita(db):
    """Margherita Pizza, $16.99, with an optional Size choice and Toppings"""
    return MenuItem.objects.create(
        name="Margherita Pizza",
        description="Tomato, mozzarella, basil",
        base_price=Decimal("16.99"),
        preparation_time=15,
    )


@pytest.fixture
def size_customization(margherita):
    """Single-select Size customization (optional)"""
    return Customization.objects.create(
        menu_item=margherita,
        name="Size",
        type=Customization.SelectionType.SINGLE,
        required=False,
        min_selections=1,
        max_selections=1,
        sort_order=0,
    )


@pytest.fixture
def medium_option(size_customization):
    return CustomizationOption.objects.create(
        customization=size_customization,
        name="Medium",
        price_modifier=Decimal("0.00"),
        sort_order=0,
    )


@pytest.fixture
def large_option(size_customization):
    """Large size, +$4.00"""
    return CustomizationOption.objects.create(
        customization=size_customization,
        name="Large",
        price_modifier=Decimal("4.00"),
        sort_order=1,
    )


@pytest.fixture
def toppings_customization(margherita):
    """Multi-select Toppings, up to 2"""
    return Customization.objects.create(
        menu_item=margherita,
        name="Toppings",
        type=Customization.SelectionType.MULTIPLE,
        required=False,
        min_selections=1,
        max_selections=2,
        sort_order=1,
    )


@pytest.fixture
def extra_cheese(toppings_customization):
    return CustomizationOption.objects.create(
        customization=toppings_customization,
        name="Extra Cheese",
        price_modifier=Decimal("1.50"),
    )


@pytest.fixture
def olives(toppings_customization):
    return CustomizationOption.objects.create(
        customization=toppings_customization,
        name="Olives",
        price_modifier=Decimal("1.00"),
    )


@pytest.fixture
def mushrooms(toppings_customization):
    return CustomizationOption.objects.create(
        customization=toppings_customization,
        name="Mushrooms",
        price_modifier=Decimal("1.25"),
    )


@pytest.fixture
def garlic_bread(db):
    """Simple item without customizations, $5.50"""
    return MenuItem.objects.create(name="Garlic Bread", base_price=Decimal("5.50"))


@pytest.fixture
def sold_out_item(db):
    """Active but temporarily unavailable item"""
    return MenuItem.objects.create(
        name="Tiramisu", base_price=Decimal("7.00"), is_available=False
    )


# ============================================================================
# ORDER FIXTURES
# ============================================================================

@pytest.fixture
def pending_order(customer, margherita, large_option, size_customization):
    """PENDING pickup order: 2x Margherita Large ($41.98 subtotal)"""
    from orders.services import OrderService

    return OrderService.create(
        make_draft(margherita, quantity=2, customizations=[selection(size_customization, large_option)]),
        customer,
    )


@pytest.fixture
def paid_order(pending_order):
    """Order whose payment succeeded (CONFIRMED / payment COMPLETED)"""
    from orders.models import Order
    from payments.services import PaymentService

    pending_order.payment_intent_id = "pi_test_paid_123"
    pending_order.payment_status = Order.PaymentStatus.PROCESSING
    pending_order.save(update_fields=["payment_intent_id", "payment_status"])
    PaymentService.handle_payment_succeeded(
        {"id": "pi_test_paid_123", "metadata": {"order_id": str(pending_order.id)}}
    )
    pending_order.refresh_from_db()
    return pending_order


# ============================================================================
# API CLIENT FIXTURES
# ============================================================================

@pytest.fixture
def customer_client(api_client, customer):
    api_client.force_authenticate(user=customer)
    return api_client


@pytest.fixture
def kitchen_client(api_client, kitchen_staff):
    api_client.force_authenticate(user=kitchen_staff)
    return api_client


@pytest.fixture
def pos_admin_client(api_client, pos_admin):
    api_client.force_authenticate(user=pos_admin)
    return api_client
