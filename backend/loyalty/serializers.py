from rest_framework import serializers

from .models import LoyaltyAccount, LoyaltyTransaction, TransactionType


class LoyaltyAccountSerializer(serializers.ModelSerializer):
    class Meta:
        model = LoyaltyAccount
        fields = [
            "total_points",
            "points_earned",
            "points_used",
            "tier",
            "tier_progress",
            "updated_at",
        ]
        read_only_fields = fields


class LoyaltyTransactionSerializer(serializers.ModelSerializer):
    order_number = serializers.CharField(source="order.order_number", read_only=True, default=None)

    class Meta:
        model = LoyaltyTransaction
        fields = [
            "id",
            "type",
            "points",
            "order",
            "order_number",
            "description",
            "expires_at",
            "created_at",
        ]
        read_only_fields = fields


class TransactionQuerySerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=TransactionType.choices, required=False)
    start_date = serializers.DateTimeField(required=False)
    end_date = serializers.DateTimeField(required=False)
    page = serializers.IntegerField(min_value=1, required=False, default=1)
    limit = serializers.IntegerField(min_value=1, max_value=100, required=False, default=20)


class RedeemPointsSerializer(serializers.Serializer):
    points = serializers.IntegerField(min_value=1)
    order_id = serializers.UUIDField(required=False, allow_null=True)
    description = serializers.CharField(max_length=255, required=False, allow_blank=True)


class BonusPointsSerializer(serializers.Serializer):
    user_id = serializers.IntegerField()
    points = serializers.IntegerField(min_value=1)
    description = serializers.CharField(max_length=255)
    expires_at = serializers.DateTimeField(required=False, allow_null=True)


class RedemptionValueSerializer(serializers.Serializer):
    points = serializers.IntegerField(min_value=0)
