"""
Serializers for cart API endpoints.
"""

from decimal import Decimal

from rest_framework import serializers

from orders.models import OrderType
from orders.serializers import CustomizationInputSerializer, DeliveryAddressSerializer
from .models import Cart, CartItem


class CartItemSerializer(serializers.ModelSerializer):
    """Serializer for cart items with their price snapshot."""

    menu_item_id = serializers.UUIDField(source="menu_item_ref", read_only=True)

    class Meta:
        model = CartItem
        fields = [
            "id",
            "menu_item_id",
            "name",
            "base_price",
            "item_price",
            "quantity",
            "customizations",
            "special_instructions",
            "subtotal",
            "added_at",
        ]
        read_only_fields = fields


class CartSerializer(serializers.ModelSerializer):
    """
    Serializer for cart with all items and stored totals.
    """

    items = CartItemSerializer(many=True, read_only=True)
    item_count = serializers.IntegerField(read_only=True)
    is_guest_cart = serializers.BooleanField(read_only=True)

    class Meta:
        model = Cart
        fields = [
            "id",
            "items",
            "item_count",
            "is_guest_cart",
            "order_type",
            "delivery_address",
            "special_instructions",
            "subtotal",
            "tax",
            "delivery_fee",
            "discount",
            "total",
            "estimated_prep_time",
            "expires_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class AddToCartSerializer(serializers.Serializer):
    """
    Request body:
    {
        "menu_item_id": "uuid",
        "quantity": 2,
        "customizations": [
            {"customization_id": "uuid", "selected_options": [{"option_id": "uuid"}]}
        ],
        "special_instructions": "No onions"
    }
    """

    menu_item_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1, default=1)
    customizations = CustomizationInputSerializer(many=True, required=False, default=list)
    special_instructions = serializers.CharField(
        max_length=500, required=False, allow_blank=True, default=""
    )


class UpdateCartItemSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1, required=False)
    special_instructions = serializers.CharField(
        max_length=500, required=False, allow_blank=True
    )

    def validate(self, data):
        if not data:
            raise serializers.ValidationError("Provide quantity or special_instructions.")
        return data


class CartSettingsSerializer(serializers.Serializer):
    order_type = serializers.ChoiceField(choices=OrderType.choices, required=False)
    delivery_address = DeliveryAddressSerializer(required=False, allow_null=True)
    special_instructions = serializers.CharField(
        max_length=1000, required=False, allow_blank=True
    )


class CheckoutSerializer(serializers.Serializer):
    tip = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal("0.00"), required=False
    )
    loyalty_points_to_use = serializers.IntegerField(min_value=0, required=False, default=0)
    scheduled_for = serializers.DateTimeField(required=False, allow_null=True)
