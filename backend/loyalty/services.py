"""
Loyalty ledger service.

Points are earned on completed, paid orders and granted as admin bonuses;
they are spent as an order discount and expire after a configurable number
of days. Every change appends a LoyaltyTransaction and adjusts the account
totals in the same database transaction, so ``total_points`` always equals
the signed sum of the ledger.

Expiry is applied lazily whenever an account is read and by the periodic
``expire_loyalty_points`` task for accounts nobody reads.
"""

from datetime import timedelta
from decimal import Decimal, ROUND_FLOOR
import logging
import math

from django.core.paginator import Paginator
from django.db import transaction
from django.db.models import Avg, Count, Sum
from django.utils import timezone

from core_backend.config import LOYALTY_TIERS, pos_settings
from core_backend.exceptions import BadRequest, InsufficientPoints, NotFound, ValidationError
from orders.models import Order, PaymentStatus
from payments.money import quantize
from users.permissions import ensure_admin
from users.services import UserLookupService
from .filters import LoyaltyTransactionFilter
from .models import LoyaltyAccount, LoyaltyTransaction, TransactionType

logger = logging.getLogger(__name__)

ACCRUING_TYPES = [TransactionType.EARNED, TransactionType.BONUS]


class LoyaltyService:

    # ------------------------------------------------------------------
    # Tier arithmetic
    # ------------------------------------------------------------------

    @staticmethod
    def tier_for(points_earned: int) -> str:
        thresholds = pos_settings.tier_thresholds
        tier = LOYALTY_TIERS[0]
        for candidate in LOYALTY_TIERS:
            if points_earned >= thresholds[candidate]:
                tier = candidate
        return tier

    @staticmethod
    def tier_progress_for(points_earned: int) -> int:
        """Linear progress from the current tier's threshold to the next, 0-100."""
        tier = LoyaltyService.tier_for(points_earned)
        index = LOYALTY_TIERS.index(tier)
        if index == len(LOYALTY_TIERS) - 1:
            return 100

        thresholds = pos_settings.tier_thresholds
        floor = thresholds[tier]
        ceiling = thresholds[LOYALTY_TIERS[index + 1]]
        progress = math.floor((points_earned - floor) * 100 / (ceiling - floor))
        return max(0, min(100, progress))

    @staticmethod
    def _refresh_tier(account: LoyaltyAccount) -> None:
        account.tier = LoyaltyService.tier_for(account.points_earned)
        account.tier_progress = LoyaltyService.tier_progress_for(account.points_earned)

    @staticmethod
    def calculate_redemption_value(points: int) -> Decimal:
        """Dollar value of ``points``: 100 points are worth REDEMPTION_VALUE."""
        return quantize(Decimal(points) / 100 * pos_settings.redemption_value)

    # ------------------------------------------------------------------
    # Account access
    # ------------------------------------------------------------------

    @staticmethod
    def _lock_account(user) -> LoyaltyAccount:
        """Get or create the user's account with its row locked."""
        LoyaltyAccount.objects.get_or_create(user=user)
        return LoyaltyAccount.objects.select_for_update().get(user=user)

    @staticmethod
    def _expire_points(account: LoyaltyAccount, now=None) -> int:
        """
        Offset every earned/bonus row past its expiry that is not offset yet.
        The account row must be locked. Returns the number of points expired.
        """
        now = now or timezone.now()
        due = LoyaltyTransaction.objects.filter(
            account=account,
            type__in=ACCRUING_TYPES,
            expires_at__lte=now,
            offset_by__isnull=True,
        ).order_by("created_at", "id")

        expired_total = 0
        for entry in due:
            LoyaltyTransaction.objects.create(
                account=account,
                type=TransactionType.EXPIRED,
                points=-entry.points,
                offsets=entry,
                description=f"Expired {entry.points} points",
            )
            expired_total += entry.points

        if expired_total:
            account.total_points -= expired_total
            account.save(update_fields=["total_points", "updated_at"])
            logger.info(f"Expired {expired_total} points on loyalty account {account.id}")
        return expired_total

    @staticmethod
    @transaction.atomic
    def get_account(user) -> LoyaltyAccount:
        """Create the account on demand and apply any pending expiry."""
        account = LoyaltyService._lock_account(user)
        LoyaltyService._expire_points(account)
        return account

    @staticmethod
    def available_points(account: LoyaltyAccount, now=None) -> int:
        """Unexpired earned and bonus points less lifetime points used."""
        now = now or timezone.now()
        unexpired = (
            LoyaltyTransaction.objects.filter(account=account, type__in=ACCRUING_TYPES)
            .exclude(expires_at__lte=now)
            .aggregate(total=Sum("points"))["total"]
            or 0
        )
        return unexpired - account.points_used

    # ------------------------------------------------------------------
    # Ledger mutations
    # ------------------------------------------------------------------

    @staticmethod
    @transaction.atomic
    def earn_points(user, order_id, amount) -> LoyaltyTransaction:
        """
        Award points for an order: floor(floor(amount x POINTS_PER_DOLLAR) x
        tier multiplier), using the tier held before the award. Returns None
        when the amount earns no points.
        """
        try:
            order = Order.objects.select_for_update().get(pk=order_id)
        except (Order.DoesNotExist, ValueError, TypeError):
            raise NotFound("Order not found")
        if order.user_id != user.id:
            raise BadRequest("Order does not belong to this user")

        account = LoyaltyService._lock_account(user)
        LoyaltyService._expire_points(account)

        base_points = math.floor(Decimal(amount) * pos_settings.points_per_dollar)
        multiplier = pos_settings.tier_multipliers[account.tier]
        points = int((base_points * multiplier).to_integral_value(rounding=ROUND_FLOOR))
        if points <= 0:
            # Zero or negative totals (negative item prices) earn nothing
            logger.info(f"No points earned on order {order.order_number} (amount {amount})")
            return None

        entry = LoyaltyTransaction.objects.create(
            account=account,
            type=TransactionType.EARNED,
            points=points,
            order=order,
            description=f"Earned {points} points from order #{order.order_number}",
            expires_at=timezone.now() + timedelta(days=pos_settings.point_expiration_days),
        )

        account.total_points += points
        account.points_earned += points
        LoyaltyService._refresh_tier(account)
        account.save()

        order.loyalty_points_earned += points
        order.save(update_fields=["loyalty_points_earned", "updated_at"])

        logger.info(
            f"User {user.id} earned {points} points on order {order.order_number} "
            f"(tier {account.tier})"
        )
        return entry

    @staticmethod
    @transaction.atomic
    def accrue_for_order(order_id):
        """
        Automatic accrual for a completed, paid order. Runs at most once per
        order; returns the transaction or None when nothing was awarded.
        """
        try:
            order = Order.objects.select_for_update().select_related("user").get(pk=order_id)
        except Order.DoesNotExist:
            return None

        if order.payment_status != PaymentStatus.COMPLETED:
            logger.info(f"Order {order.order_number} completed unpaid; no points accrued")
            return None
        if LoyaltyTransaction.objects.filter(order=order, type=TransactionType.EARNED).exists():
            return None

        return LoyaltyService.earn_points(order.user, order.id, order.total)

    @staticmethod
    @transaction.atomic
    def redeem_points(user, points: int, order_id=None, description=None) -> LoyaltyTransaction:
        """
        Spend points. The availability check and the decrement happen under
        the account row lock.

        Raises:
            InsufficientPoints: fewer points available than requested
        """
        if points is None or points <= 0:
            raise ValidationError("Points to redeem must be positive")

        account = LoyaltyService._lock_account(user)
        LoyaltyService._expire_points(account)

        available = LoyaltyService.available_points(account)
        if available < points:
            raise InsufficientPoints(max(available, 0), points)

        entry = LoyaltyTransaction.objects.create(
            account=account,
            type=TransactionType.REDEEMED,
            points=-points,
            order_id=order_id,
            description=description or f"Redeemed {points} points",
        )

        account.total_points -= points
        account.points_used += points
        account.save(update_fields=["total_points", "points_used", "updated_at"])

        logger.info(f"User {user.id} redeemed {points} points")
        return entry

    @staticmethod
    @transaction.atomic
    def reverse_redemption(order: Order):
        """
        Give back the points an order spent when it is cancelled or removed.

        The caller holds the order row lock. The reversal is a positive
        ``redeemed`` row, so the ledger still sums to ``total_points``, and
        ``points_used`` drops by the same amount. Clears
        ``order.loyalty_points_used`` so the reversal happens once.
        """
        points = order.loyalty_points_used
        if not points:
            return None

        account = LoyaltyService._lock_account(order.user)
        entry = LoyaltyTransaction.objects.create(
            account=account,
            type=TransactionType.REDEEMED,
            points=points,
            order=order,
            description=f"Returned {points} points from order #{order.order_number}",
        )

        account.total_points += points
        account.points_used = max(0, account.points_used - points)
        account.save(update_fields=["total_points", "points_used", "updated_at"])

        order.loyalty_points_used = 0
        order.save(update_fields=["loyalty_points_used", "updated_at"])

        logger.info(f"Returned {points} points to user {order.user_id} from order {order.order_number}")
        return entry

    @staticmethod
    @transaction.atomic
    def add_bonus_points(user_id, points: int, description: str, actor, expires_at=None):
        """Admin grant. Bonus points count toward the tier like earned ones."""
        ensure_admin(actor)
        if points is None or points <= 0:
            raise ValidationError("Bonus points must be positive")

        user = UserLookupService.find_by_id(user_id)
        account = LoyaltyService._lock_account(user)
        LoyaltyService._expire_points(account)

        entry = LoyaltyTransaction.objects.create(
            account=account,
            type=TransactionType.BONUS,
            points=points,
            description=description or f"Bonus {points} points",
            expires_at=expires_at
            or timezone.now() + timedelta(days=pos_settings.point_expiration_days),
        )

        account.total_points += points
        account.points_earned += points
        LoyaltyService._refresh_tier(account)
        account.save()

        logger.info(f"Admin {actor.id} granted {points} bonus points to user {user.id}")
        return entry

    @staticmethod
    def expire_all(now=None) -> int:
        """Apply expiry to every account holding overdue points."""
        now = now or timezone.now()
        account_ids = (
            LoyaltyTransaction.objects.filter(
                type__in=ACCRUING_TYPES, expires_at__lte=now, offset_by__isnull=True
            )
            .values_list("account_id", flat=True)
            .distinct()
        )

        expired = 0
        for account_id in list(account_ids):
            with transaction.atomic():
                account = LoyaltyAccount.objects.select_for_update().get(pk=account_id)
                expired += LoyaltyService._expire_points(account, now=now)
        return expired

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @staticmethod
    def get_transactions(user, type=None, start=None, end=None, page=1, limit=20):
        """Newest-first page of the user's ledger; returns a Paginator page."""
        account = LoyaltyService.get_account(user)
        params = {"type": type, "start_date": start, "end_date": end}
        queryset = LoyaltyTransactionFilter(
            {k: v for k, v in params.items() if v},
            queryset=account.transactions.select_related("order"),
        ).qs
        return Paginator(queryset, max(1, int(limit))).get_page(page)

    @staticmethod
    def points_required_for_next_tier(user):
        account = LoyaltyService.get_account(user)
        index = LOYALTY_TIERS.index(account.tier)
        if index == len(LOYALTY_TIERS) - 1:
            return None

        next_tier = LOYALTY_TIERS[index + 1]
        threshold = pos_settings.tier_thresholds[next_tier]
        return {
            "next_tier": next_tier,
            "points_required": max(0, threshold - account.points_earned),
        }

    @staticmethod
    def get_stats():
        totals = LoyaltyAccount.objects.aggregate(
            total_accounts=Count("id"),
            points_issued=Sum("points_earned"),
            points_redeemed=Sum("points_used"),
            average_balance=Avg("total_points"),
        )
        distribution = {tier: 0 for tier in LOYALTY_TIERS}
        for row in LoyaltyAccount.objects.values("tier").annotate(count=Count("id")):
            distribution[row["tier"]] = row["count"]

        return {
            "total_accounts": totals["total_accounts"],
            "total_points_issued": totals["points_issued"] or 0,
            "total_points_redeemed": totals["points_redeemed"] or 0,
            "average_balance": round(float(totals["average_balance"] or 0), 2),
            "tier_distribution": distribution,
        }
