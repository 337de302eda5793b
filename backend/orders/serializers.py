from decimal import Decimal

from rest_framework import serializers

from users.serializers import UserSummarySerializer
from .models import Order, OrderItem, OrderStatus, OrderTimelineEntry, OrderType


class SelectedOptionInputSerializer(serializers.Serializer):
    option_id = serializers.UUIDField()


class CustomizationInputSerializer(serializers.Serializer):
    """One customization selection as sent by the client."""

    customization_id = serializers.UUIDField()
    selected_options = SelectedOptionInputSerializer(many=True, required=False, default=list)

    def to_internal_value(self, data):
        value = super().to_internal_value(data)
        return {
            "customization_id": str(value["customization_id"]),
            "selected_options": [
                {"option_id": str(o["option_id"])} for o in value["selected_options"]
            ],
        }


class DeliveryAddressSerializer(serializers.Serializer):
    street = serializers.CharField(max_length=255)
    city = serializers.CharField(max_length=100)
    state = serializers.CharField(max_length=100)
    zip_code = serializers.CharField(max_length=20)
    country = serializers.CharField(max_length=100, required=False)
    instructions = serializers.CharField(max_length=500, required=False, allow_blank=True)


class OrderItemInputSerializer(serializers.Serializer):
    menu_item_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)
    customizations = CustomizationInputSerializer(many=True, required=False, default=list)
    special_instructions = serializers.CharField(
        max_length=500, required=False, allow_blank=True, default=""
    )


class OrderCreateSerializer(serializers.Serializer):
    """
    Validates the shape of a direct order request. Prices are never read
    from the request; OrderService re-prices every line.
    """

    items = OrderItemInputSerializer(many=True)
    order_type = serializers.ChoiceField(choices=OrderType.choices)
    delivery_address = DeliveryAddressSerializer(required=False, allow_null=True)
    special_instructions = serializers.CharField(
        max_length=1000, required=False, allow_blank=True, default=""
    )
    scheduled_for = serializers.DateTimeField(required=False, allow_null=True)
    tip = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal("0.00"), required=False
    )
    loyalty_points_to_use = serializers.IntegerField(min_value=0, required=False, default=0)

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("Order must contain at least one item.")
        return value


class OrderItemSerializer(serializers.ModelSerializer):
    menu_item_id = serializers.UUIDField(source="menu_item_ref", read_only=True)

    class Meta:
        model = OrderItem
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
        ]
        read_only_fields = fields


class OrderTimelineEntrySerializer(serializers.ModelSerializer):
    staff = UserSummarySerializer(read_only=True)

    class Meta:
        model = OrderTimelineEntry
        fields = ["status", "timestamp", "staff", "notes"]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Full order representation with items and timeline."""

    user = UserSummarySerializer(read_only=True)
    assigned_to_staff = UserSummarySerializer(read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)
    timeline = OrderTimelineEntrySerializer(many=True, read_only=True)
    rating = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "user",
            "status",
            "payment_status",
            "order_type",
            "items",
            "subtotal",
            "tax",
            "tip",
            "delivery_fee",
            "discount",
            "total",
            "payment_intent_id",
            "payment_completed_at",
            "refund_amount",
            "refunded_at",
            "delivery_address",
            "special_instructions",
            "estimated_prep_time",
            "actual_prep_time",
            "scheduled_for",
            "assigned_to_staff",
            "loyalty_points_earned",
            "loyalty_points_used",
            "rating",
            "timeline",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_rating(self, obj):
        if not obj.is_rated:
            return None
        return {
            "overall": obj.rating_overall,
            "food": obj.rating_food,
            "service": obj.rating_service,
            "delivery": obj.rating_delivery,
            "comment": obj.rating_comment,
            "rated_at": obj.rated_at,
        }


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight list view without the timeline."""

    items = OrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "status",
            "payment_status",
            "order_type",
            "items",
            "total",
            "estimated_prep_time",
            "assigned_to_staff",
            "created_at",
        ]
        read_only_fields = fields


class UpdateOrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices)
    notes = serializers.CharField(max_length=1000, required=False, allow_blank=True)


class AssignStaffSerializer(serializers.Serializer):
    staff_id = serializers.IntegerField()


class OrderRatingSerializer(serializers.Serializer):
    overall = serializers.IntegerField(min_value=1, max_value=5)
    food = serializers.IntegerField(min_value=1, max_value=5)
    service = serializers.IntegerField(min_value=1, max_value=5)
    delivery = serializers.IntegerField(min_value=1, max_value=5, required=False)
    comment = serializers.CharField(max_length=1000, required=False, allow_blank=True)


class OrderAdminUpdateSerializer(serializers.Serializer):
    special_instructions = serializers.CharField(
        max_length=1000, required=False, allow_blank=True
    )
    scheduled_for = serializers.DateTimeField(required=False, allow_null=True)
    actual_prep_time = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    tip = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal("0.00"), required=False)
    notes = serializers.CharField(max_length=1000, required=False, allow_blank=True)
