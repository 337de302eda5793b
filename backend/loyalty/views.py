import logging

from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from users.permissions import IsAdmin
from .serializers import (
    BonusPointsSerializer,
    LoyaltyAccountSerializer,
    LoyaltyTransactionSerializer,
    RedeemPointsSerializer,
    RedemptionValueSerializer,
    TransactionQuerySerializer,
)
from .services import LoyaltyService

logger = logging.getLogger(__name__)


class LoyaltyAccountView(APIView):
    """Current user's balance, tier and tier progress."""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        account = LoyaltyService.get_account(request.user)
        return Response(LoyaltyAccountSerializer(account).data)


class LoyaltyTransactionListView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        query = TransactionQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        params = query.validated_data

        page = LoyaltyService.get_transactions(
            request.user,
            type=params.get("type"),
            start=params.get("start_date"),
            end=params.get("end_date"),
            page=params["page"],
            limit=params["limit"],
        )
        return Response(
            {
                "count": page.paginator.count,
                "page": page.number,
                "total_pages": page.paginator.num_pages,
                "results": LoyaltyTransactionSerializer(page.object_list, many=True).data,
            }
        )


class RedeemPointsView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = RedeemPointsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        entry = LoyaltyService.redeem_points(
            request.user,
            data["points"],
            order_id=data.get("order_id"),
            description=data.get("description") or None,
        )
        account = LoyaltyService.get_account(request.user)
        return Response(
            {
                "transaction": LoyaltyTransactionSerializer(entry).data,
                "account": LoyaltyAccountSerializer(account).data,
                "value": LoyaltyService.calculate_redemption_value(data["points"]),
            },
            status=status.HTTP_201_CREATED,
        )


class BonusPointsView(APIView):
    permission_classes = [IsAdmin]

    def post(self, request):
        serializer = BonusPointsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        entry = LoyaltyService.add_bonus_points(
            data["user_id"],
            data["points"],
            data["description"],
            request.user,
            expires_at=data.get("expires_at"),
        )
        return Response(LoyaltyTransactionSerializer(entry).data, status=status.HTTP_201_CREATED)


class RedemptionValueView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        serializer = RedemptionValueSerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        points = serializer.validated_data["points"]
        return Response(
            {"points": points, "value": LoyaltyService.calculate_redemption_value(points)}
        )


class NextTierView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(LoyaltyService.points_required_for_next_tier(request.user))


class LoyaltyStatsView(APIView):
    permission_classes = [IsAdmin]

    def get(self, request):
        return Response(LoyaltyService.get_stats())
