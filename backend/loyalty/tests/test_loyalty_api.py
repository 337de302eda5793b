"""
Loyalty API tests.
"""
import pytest
from decimal import Decimal

from loyalty.services import LoyaltyService

LOYALTY_URL = "/api/loyalty/"


@pytest.fixture
def customer_with_points(customer, pos_admin):
    LoyaltyService.add_bonus_points(customer.id, 600, "Welcome bonus", pos_admin)
    return customer


@pytest.mark.django_db
class TestLoyaltyAccountAPI:
    def test_account_created_on_first_read(self, customer_client):
        response = customer_client.get(f"{LOYALTY_URL}account/")

        assert response.status_code == 200
        assert response.data["total_points"] == 0
        assert response.data["tier"] == "bronze"

    def test_account_after_bonus(self, customer_client, customer_with_points):
        response = customer_client.get(f"{LOYALTY_URL}account/")
        assert response.data["total_points"] == 600
        assert response.data["tier"] == "silver"
        assert response.data["tier_progress"] == 10

    def test_requires_authentication(self, api_client):
        assert api_client.get(f"{LOYALTY_URL}account/").status_code == 401

    def test_transactions_page(self, customer_client, customer_with_points):
        response = customer_client.get(f"{LOYALTY_URL}transactions/", {"type": "bonus", "limit": 5})

        assert response.status_code == 200
        assert response.data["count"] == 1
        assert response.data["total_pages"] == 1
        assert response.data["results"][0]["points"] == 600

    def test_next_tier(self, customer_client, customer_with_points):
        response = customer_client.get(f"{LOYALTY_URL}next-tier/")
        assert response.data == {"next_tier": "gold", "points_required": 900}

    def test_redemption_value(self, customer_client):
        response = customer_client.get(f"{LOYALTY_URL}redemption-value/", {"points": 350})
        assert response.data == {"points": 350, "value": Decimal("3.50")}


@pytest.mark.django_db
class TestRedeemAPI:
    def test_redeem(self, customer_client, customer_with_points):
        response = customer_client.post(f"{LOYALTY_URL}redeem/", {"points": 250}, format="json")

        assert response.status_code == 201
        assert response.data["transaction"]["points"] == -250
        assert response.data["account"]["total_points"] == 350
        assert response.data["value"] == Decimal("2.50")

    def test_insufficient_points_is_conflict(self, customer_client, customer_with_points):
        response = customer_client.post(f"{LOYALTY_URL}redeem/", {"points": 601}, format="json")

        assert response.status_code == 409
        assert response.data["error"] == "insufficient_points"
        assert response.data["message"] == "Insufficient points. Available: 600, Requested: 601"


@pytest.mark.django_db
class TestAdminLoyaltyAPI:
    def test_bonus(self, pos_admin_client, customer):
        response = pos_admin_client.post(
            f"{LOYALTY_URL}bonus/",
            {"user_id": customer.id, "points": 150, "description": "Apology for late order"},
            format="json",
        )
        assert response.status_code == 201
        assert response.data["type"] == "bonus"
        assert response.data["description"] == "Apology for late order"

    def test_bonus_unknown_user(self, pos_admin_client):
        response = pos_admin_client.post(
            f"{LOYALTY_URL}bonus/",
            {"user_id": 987654, "points": 150, "description": "Nobody"},
            format="json",
        )
        assert response.status_code == 404

    def test_bonus_forbidden_for_customers(self, customer_client, customer):
        response = customer_client.post(
            f"{LOYALTY_URL}bonus/",
            {"user_id": customer.id, "points": 150, "description": "Self-service"},
            format="json",
        )
        assert response.status_code == 403

    def test_stats(self, pos_admin_client, customer_with_points):
        response = pos_admin_client.get(f"{LOYALTY_URL}stats/")
        assert response.status_code == 200
        assert response.data["total_accounts"] == 1
        assert response.data["tier_distribution"]["silver"] == 1
