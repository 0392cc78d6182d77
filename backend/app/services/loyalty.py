"""Customer loyalty program: tiers, point accrual and redemption."""

import enum
from dataclasses import dataclass
from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal

from app.core.config import settings
from app.core.errors import LoyaltyError


class LoyaltyTier(str, enum.Enum):
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"
    DIAMOND = "diamond"


@dataclass(frozen=True)
class TierRule:
    tier: LoyaltyTier
    name: str
    minimum_spent: Decimal
    points_multiplier: Decimal
    discount_percentage: Decimal
    benefits: tuple[str, ...] = ()


# Ordered by minimum_spent ascending
TIER_RULES: tuple[TierRule, ...] = (
    TierRule(LoyaltyTier.BRONZE, "Đồng", Decimal("0"), Decimal("1"), Decimal("0"),
             ("Tích điểm cơ bản",)),
    TierRule(LoyaltyTier.SILVER, "Bạc", Decimal("5000000"), Decimal("1.2"), Decimal("2"),
             ("Tích điểm x1.2", "Giảm giá 2%", "Ưu tiên hỗ trợ")),
    TierRule(LoyaltyTier.GOLD, "Vàng", Decimal("20000000"), Decimal("1.5"), Decimal("5"),
             ("Tích điểm x1.5", "Giảm giá 5%", "Quà sinh nhật")),
    TierRule(LoyaltyTier.PLATINUM, "Bạch kim", Decimal("50000000"), Decimal("2"), Decimal("8"),
             ("Tích điểm x2", "Giảm giá 8%", "Sự kiện VIP")),
    TierRule(LoyaltyTier.DIAMOND, "Kim cương", Decimal("100000000"), Decimal("2.5"), Decimal("10"),
             ("Tích điểm x2.5", "Giảm giá 10%", "Ưu đãi độc quyền")),
)

_RULES_BY_TIER = {rule.tier: rule for rule in TIER_RULES}


def get_tier_rule(tier: LoyaltyTier | str) -> TierRule:
    return _RULES_BY_TIER[LoyaltyTier(tier)]


def tier_for_spent(total_spent: Decimal) -> TierRule:
    current = TIER_RULES[0]
    for rule in TIER_RULES:
        if total_spent >= rule.minimum_spent:
            current = rule
    return current


def next_tier(tier: LoyaltyTier | str) -> TierRule | None:
    index = TIER_RULES.index(get_tier_rule(tier))
    if index == len(TIER_RULES) - 1:
        return None
    return TIER_RULES[index + 1]


def tier_progress(total_spent: Decimal) -> Decimal:
    """Percent of the way from the current tier's floor to the next tier's. 100 at the top tier."""
    current = tier_for_spent(total_spent)
    upcoming = next_tier(current.tier)
    if upcoming is None:
        return Decimal("100")
    span = upcoming.minimum_spent - current.minimum_spent
    progress = (total_spent - current.minimum_spent) / span * 100
    return min(max(progress, Decimal("0")), Decimal("100")).quantize(
        Decimal("0.01"), rounding=ROUND_HALF_UP
    )


def points_earned(order_amount: Decimal, tier: LoyaltyTier | str = LoyaltyTier.BRONZE) -> int:
    """1 point per LOYALTY_VND_PER_POINT đồng, scaled by the tier multiplier and floored."""
    if order_amount < settings.LOYALTY_MIN_ORDER_FOR_POINTS:
        return 0
    base = order_amount / settings.LOYALTY_VND_PER_POINT
    scaled = base * get_tier_rule(tier).points_multiplier
    return int(scaled.to_integral_value(rounding=ROUND_FLOOR))


def tier_discount(order_amount: Decimal, tier: LoyaltyTier | str) -> Decimal:
    rule = get_tier_rule(tier)
    if order_amount <= 0 or rule.discount_percentage <= 0:
        return Decimal("0")
    return (order_amount * rule.discount_percentage / 100).quantize(
        Decimal("1"), rounding=ROUND_HALF_UP
    )


def redeemable_points(points: int) -> int:
    """Points are spent in whole blocks of LOYALTY_MIN_REDEMPTION."""
    block = settings.LOYALTY_MIN_REDEMPTION
    return (points // block) * block


def redemption_value(points: int, balance: int) -> Decimal:
    """VND value of redeeming ``points`` from a balance; validates minimum and balance."""
    if points <= 0:
        return Decimal("0")
    if points < settings.LOYALTY_MIN_REDEMPTION:
        raise LoyaltyError(
            f"Cần tối thiểu {settings.LOYALTY_MIN_REDEMPTION} điểm để đổi thưởng"
        )
    if points > balance:
        raise LoyaltyError(f"Không đủ điểm. Hiện có {balance}, yêu cầu {points}")
    usable = redeemable_points(points)
    return Decimal(usable * settings.LOYALTY_POINT_VALUE)
