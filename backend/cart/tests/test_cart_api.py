"""
Cart API tests: guest carts via the X-Session-ID header, authenticated
carts, and checkout over HTTP.
"""
import pytest

from cart.models import Cart
from core_backend.tests.fixtures import selection

CART_URL = "/api/cart/"
SESSION = {"HTTP_X_SESSION_ID": "guest-abc-123"}


@pytest.mark.django_db
class TestGuestCartAPI:
    def test_requires_owner(self, api_client):
        response = api_client.get(CART_URL)
        assert response.status_code == 400
        assert response.data["error"] == "invalid_owner"

    def test_get_creates_empty_cart(self, api_client):
        response = api_client.get(CART_URL, **SESSION)

        assert response.status_code == 200
        assert response.data["is_guest_cart"] is True
        assert response.data["items"] == []
        assert response.data["total"] == "0.00"

    def test_add_item(self, api_client, margherita, size_customization, large_option):
        response = api_client.post(
            f"{CART_URL}items/",
            {
                "menu_item_id": str(margherita.id),
                "quantity": 2,
                "customizations": [selection(size_customization, large_option)],
            },
            format="json",
            **SESSION,
        )
        assert response.status_code == 201, response.data
        assert response.data["item_count"] == 2
        assert response.data["subtotal"] == "41.98"
        assert response.data["total"] == "45.34"

    def test_update_and_remove_item(self, api_client, garlic_bread):
        response = api_client.post(
            f"{CART_URL}items/", {"menu_item_id": str(garlic_bread.id)}, format="json", **SESSION
        )
        item_id = response.data["items"][0]["id"]

        response = api_client.patch(
            f"{CART_URL}items/{item_id}/", {"quantity": 3}, format="json", **SESSION
        )
        assert response.status_code == 200
        assert response.data["subtotal"] == "16.50"

        response = api_client.delete(f"{CART_URL}items/{item_id}/", **SESSION)
        assert response.status_code == 200
        assert response.data["items"] == []

    def test_update_requires_a_field(self, api_client, garlic_bread):
        response = api_client.post(
            f"{CART_URL}items/", {"menu_item_id": str(garlic_bread.id)}, format="json", **SESSION
        )
        item_id = response.data["items"][0]["id"]
        response = api_client.patch(f"{CART_URL}items/{item_id}/", {}, format="json", **SESSION)
        assert response.status_code == 400

    def test_settings(self, api_client, garlic_bread):
        api_client.post(f"{CART_URL}items/", {"menu_item_id": str(garlic_bread.id)}, format="json", **SESSION)
        response = api_client.patch(
            f"{CART_URL}settings/", {"order_type": "dine-in"}, format="json", **SESSION
        )
        assert response.status_code == 200
        assert response.data["order_type"] == "dine-in"
        assert response.data["estimated_prep_time"] == 15

    def test_clear(self, api_client, garlic_bread):
        api_client.post(f"{CART_URL}items/", {"menu_item_id": str(garlic_bread.id)}, format="json", **SESSION)
        response = api_client.delete(f"{CART_URL}clear/", **SESSION)
        assert response.status_code == 200
        assert response.data["item_count"] == 0

    def test_guest_checkout_forbidden(self, api_client, garlic_bread):
        api_client.post(f"{CART_URL}items/", {"menu_item_id": str(garlic_bread.id)}, format="json", **SESSION)
        response = api_client.post(f"{CART_URL}checkout/", {}, format="json", **SESSION)
        assert response.status_code == 403


@pytest.mark.django_db
class TestUserCartAPI:
    def test_checkout(self, customer_client, customer, garlic_bread):
        customer_client.post(
            f"{CART_URL}items/", {"menu_item_id": str(garlic_bread.id), "quantity": 2}, format="json"
        )
        response = customer_client.post(f"{CART_URL}checkout/", {"tip": "1.00"}, format="json")

        assert response.status_code == 201, response.data
        assert response.data["status"] == "pending"
        assert response.data["subtotal"] == "11.00"
        assert response.data["total"] == "12.88", "11.00 + 0.88 tax + 1.00 tip"
        assert not Cart.objects.filter(user=customer).exists()

    def test_empty_checkout(self, customer_client):
        response = customer_client.post(f"{CART_URL}checkout/", {}, format="json")
        assert response.status_code == 400
        assert response.data["error"] == "validation_error"
