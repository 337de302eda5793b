from django.urls import path

from .views import (
    BonusPointsView,
    LoyaltyAccountView,
    LoyaltyStatsView,
    LoyaltyTransactionListView,
    NextTierView,
    RedeemPointsView,
    RedemptionValueView,
)

app_name = "loyalty"

urlpatterns = [
    path("account/", LoyaltyAccountView.as_view(), name="account"),
    path("transactions/", LoyaltyTransactionListView.as_view(), name="transactions"),
    path("redeem/", RedeemPointsView.as_view(), name="redeem"),
    path("bonus/", BonusPointsView.as_view(), name="bonus"),
    path("redemption-value/", RedemptionValueView.as_view(), name="redemption-value"),
    path("next-tier/", NextTierView.as_view(), name="next-tier"),
    path("stats/", LoyaltyStatsView.as_view(), name="stats"),
]
