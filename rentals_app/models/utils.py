from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def percentage_of(total: Decimal, percentage: int | Decimal) -> Decimal:
    return Decimal(total) * Decimal(percentage) / Decimal(100)


def within_tolerance(actual: Decimal, expected: Decimal, tolerance: Decimal) -> bool:
    return abs(Decimal(actual) - Decimal(expected)) <= Decimal(tolerance)


def as_money(amount: Decimal) -> Decimal:
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal(1), rounding=ROUND_HALF_UP))
