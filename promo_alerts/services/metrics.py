import math
from dataclasses import dataclass
from datetime import datetime, timezone

from promo_alerts.db.models import DiscountType, PromoCode


DEFAULT_MIN_ORDER_AMOUNT = 100.0
# Assumed basket size relative to the minimum order for a redeemed code.
REVENUE_MULTIPLIER = 1.5
SECONDS_PER_DAY = 24 * 60 * 60


@dataclass(frozen=True)
class RoiSnapshot:
    discount_given: float
    revenue_influenced: float
    roi_pct: int


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def redemption_pct(promo: PromoCode) -> float | None:
    if not promo.usage_limit or promo.used_count <= 0:
        return None
    return promo.used_count / promo.usage_limit * 100


def days_until(expires_at: datetime, now: datetime) -> int:
    remaining = (as_utc(expires_at) - as_utc(now)).total_seconds()
    return math.ceil(remaining / SECONDS_PER_DAY)


def min_order_amount(promo: PromoCode) -> float:
    return float(promo.min_order_amount or DEFAULT_MIN_ORDER_AMOUNT)


def average_discount(promo: PromoCode) -> float:
    value = float(promo.discount_value or 0)
    if promo.discount_type == DiscountType.FLAT:
        return value
    return value / 100 * min_order_amount(promo)


def compute_roi(promo: PromoCode) -> RoiSnapshot:
    used = promo.used_count or 0
    discount_given = average_discount(promo) * used
    revenue_influenced = min_order_amount(promo) * REVENUE_MULTIPLIER * used
    if discount_given > 0:
        roi = round_half_up(
            (revenue_influenced - discount_given) / discount_given * 100
        )
    else:
        roi = 0
    return RoiSnapshot(
        discount_given=discount_given,
        revenue_influenced=revenue_influenced,
        roi_pct=roi,
    )
